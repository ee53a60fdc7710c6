"""Tests for commit label resolution."""

import threading

import pytest

from blame_view.errors import RevisionNotFound
from blame_view.labels import distinct_commits, git_commit_label, resolve_commit_names

from conftest import requires_git


def _segments(*shas):
    return [{"commit_sha": sha, "content_lines": ["x"]} for sha in shas]


class TestDistinctCommits:
    def test_first_appearance_order(self):
        assert distinct_commits(_segments("b", "a", "b", "c", "a")) == ["b", "a", "c"]

    def test_empty(self):
        assert distinct_commits([]) == []


class TestResolveCommitNames:
    def test_each_commit_fetched_once(self):
        calls = []
        lock = threading.Lock()

        def fetch(sha, cwd):
            with lock:
                calls.append(sha)
            return f"label {sha}"

        names = resolve_commit_names(_segments("a", "b", "a", "a", "b"), fetch=fetch)
        assert names == {"a": "label a", "b": "label b"}
        assert sorted(calls) == ["a", "b"]

    def test_cwd_is_passed_through(self):
        seen = []
        resolve_commit_names(_segments("a"), cwd="/some/repo", fetch=lambda sha, cwd: seen.append(cwd) or "")
        assert seen == ["/some/repo"]

    def test_failed_lookup_degrades_to_empty(self, caplog):
        names = resolve_commit_names(
            _segments("good", "bad"),
            fetch=lambda sha, cwd: None if sha == "bad" else "ok",
        )
        assert names == {"good": "ok", "bad": ""}
        assert "no label for commit bad" in caplog.text

    def test_failed_lookup_aborts(self):
        with pytest.raises(RevisionNotFound) as exc:
            resolve_commit_names(
                _segments("good", "bad"),
                fetch=lambda sha, cwd: None if sha == "bad" else "ok",
                on_error="abort",
            )
        assert exc.value.revision == "bad"

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            resolve_commit_names(_segments("a"), fetch=lambda sha, cwd: "", on_error="retry")

    def test_no_segments(self):
        assert resolve_commit_names([], fetch=lambda sha, cwd: "never") == {}


@requires_git
class TestGitCommitLabel:
    def test_full_message(self, git_repo):
        assert git_commit_label(git_repo["first"], git_repo["path"]) == "Initial import"

    def test_custom_format(self, git_repo):
        label = git_commit_label(git_repo["second"], git_repo["path"], "%an: %s")
        assert label == "Test Author: Add markup line"

    def test_unknown_commit(self, git_repo):
        assert git_commit_label("0" * 40, git_repo["path"]) is None

    def test_resolve_with_git(self, git_repo):
        segments = _segments(git_repo["first"], git_repo["second"], git_repo["first"])
        names = resolve_commit_names(segments, cwd=git_repo["path"], label_format="%s")
        assert names == {
            git_repo["first"]: "Initial import",
            git_repo["second"]: "Add markup line",
        }
