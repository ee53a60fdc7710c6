"""Shared fixtures: temporary git repositories and isolated config."""

import os
import shutil
import subprocess

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo, *args):
    env = dict(os.environ)
    env.update({
        "GIT_AUTHOR_NAME": "Test Author",
        "GIT_AUTHOR_EMAIL": "author@example.com",
        "GIT_COMMITTER_NAME": "Test Author",
        "GIT_COMMITTER_EMAIL": "author@example.com",
        "GIT_CONFIG_NOSYSTEM": "1",
        "GIT_CONFIG_GLOBAL": os.devnull,
    })
    result = subprocess.run(
        ["git", *args], cwd=repo, env=env,
        capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.blame-view and BLAME_VIEW_* env."""
    from blame_view import config

    home = tmp_path / "home"
    monkeypatch.setattr(config, "GLOBAL_CONFIG_DIR", home / ".blame-view")
    monkeypatch.setattr(config, "GLOBAL_CONFIG_FILE", home / ".blame-view" / "config.json")
    for var in config.ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def git_repo(tmp_path):
    """A repo with two commits touching src/app.py.

    Final content of src/app.py (5 lines):
        1 first   <- "Initial import"
        2 second  <- "Initial import"
        3 <b>&    <- "Add markup line"
        4 third   <- "Initial import"
        5 fourth  <- "Add markup line"

    Returns a dict with the repo path and both commit ids.
    """
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    _git(repo, "init", "-q")

    app = repo / "src" / "app.py"
    app.write_text("first\nsecond\nthird\n")
    _git(repo, "add", "src/app.py")
    _git(repo, "commit", "-q", "-m", "Initial import")
    first = _git(repo, "rev-parse", "HEAD")

    app.write_text("first\nsecond\n<b>&\nthird\nfourth\n")
    _git(repo, "commit", "-q", "-am", "Add markup line")
    second = _git(repo, "rev-parse", "HEAD")

    return {"path": str(repo), "first": first, "second": second}


def commit_bytes(repo, rel_path, data, message):
    """Write *data* verbatim to *rel_path*, commit it, and return the new sha."""
    target = os.path.join(repo, rel_path)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, "wb") as f:
        f.write(data)
    _git(repo, "add", rel_path)
    _git(repo, "commit", "-q", "-m", message)
    return _git(repo, "rev-parse", "HEAD")
