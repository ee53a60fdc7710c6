"""
/api/blame and /blame — blame annotation for one file revision.

Both routes share get_blame(); /blame wraps the result in the HTML page.
Path must be under project_root.
"""
from __future__ import annotations

import logging
import os
from typing import Any

from blame_view.annotate import annotate_file
from blame_view.config import get_settings
from blame_view.errors import (
    BlameFailed,
    BlameViewError,
    NotAGitRepository,
    RevisionNotFound,
)
from blame_view.page import render_page

logger = logging.getLogger(__name__)


def resolve_path(project_root: str, rel_path: str) -> str | None:
    """Resolve rel_path under project_root; return None if outside root (path traversal)."""
    root = os.path.abspath(project_root)
    full = os.path.normpath(os.path.join(root, rel_path.lstrip("/")))
    if full != root and not full.startswith(root + os.sep):
        return None
    return full


def get_blame(
    project_root: str,
    rel_path: str,
    revision: str | None = None,
) -> tuple[dict[str, Any] | None, str | None, int]:
    """
    Blame the file at rel_path under project_root.

    - Returns (None, error_message, 400) if the path escapes the project.
    - Returns (None, error_message, 404) for unknown repo, revision or file.
    - Returns (result_dict, None, 200) on success.
    """
    if resolve_path(project_root, rel_path) is None:
        return None, "path outside project", 400

    try:
        data = annotate_file(
            rel_path.lstrip("/"),
            revision=revision or None,
            project_dir=project_root,
            settings=get_settings(project_root),
        )
    except NotAGitRepository:
        return None, "not a git repository", 404
    except RevisionNotFound as e:
        return None, str(e), 404
    except BlameFailed:
        return None, "file not found at revision", 404
    except BlameViewError as e:
        logger.error("blame %s failed: %s", rel_path, e)
        return None, str(e), 500
    return data, None, 200


def get_blame_page(
    project_root: str,
    rel_path: str,
    revision: str | None = None,
) -> tuple[str | None, str | None, int]:
    """Same as get_blame but returns the rendered HTML page."""
    data, err, status = get_blame(project_root, rel_path, revision)
    if data is None:
        return None, err, status
    settings = get_settings(project_root)
    page = render_page(
        data["path"],
        data["revision"],
        data,
        repo_link=settings["repo_link"],
        file_size=data["file_size"],
        latest_commit=data["latest_commit"],
    )
    return page, None, 200
