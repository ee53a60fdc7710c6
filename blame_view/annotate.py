"""
End-to-end blame annotation for one file revision.

Loads segments from git, resolves commit labels once per distinct commit,
then renders the three aligned streams. Shared by the CLI and the viewer.
"""

from __future__ import annotations

from typing import Any

from .blame import (
    blame_segments_at,
    file_size_at,
    git_toplevel,
    latest_commit_at,
    relative_to_root,
    resolve_revision,
)
from .config import get_settings
from .labels import resolve_commit_names
from .render import render_blame


def annotate_file(
    file_path: str,
    *,
    revision: str | None = None,
    project_dir: str | None = None,
    settings: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Blame *file_path* at *revision* and return the rendered result.

    Returns
    -------
    dict
        ``path``, ``revision`` (full commit id), ``file_size`` (blob size at
        the revision), ``latest_commit`` (last commit touching the file),
        ``commit_names`` and the ``commit_info`` / ``line_numbers`` /
        ``code_lines`` streams.
    """
    if settings is None:
        settings = get_settings(project_dir)

    git_root = git_toplevel(project_dir)
    commit_id = resolve_revision(revision, cwd=git_root)
    rel_path = relative_to_root(file_path, git_root, project_dir)
    segments = blame_segments_at(rel_path, commit_id, git_root)

    commit_names = resolve_commit_names(
        segments,
        cwd=git_root,
        label_format=settings["label_format"],
        on_error=settings["on_missing_label"],
    )
    result = render_blame(
        segments,
        commit_names,
        repo_link=settings["repo_link"],
        validate=settings["validate"],
    )
    return {
        "path": file_path,
        "revision": commit_id,
        "file_size": file_size_at(rel_path, commit_id, git_root),
        "latest_commit": latest_commit_at(rel_path, commit_id, git_root),
        "commit_names": commit_names,
        **result,
    }
