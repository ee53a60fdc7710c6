"""
/raw — file content at a revision (relative to project root).
Returns 404 for binary or missing files.
"""
from __future__ import annotations

import os

from blame_view.blame import read_file_at_revision
from blame_view.errors import BlameViewError

# Common binary extensions / patterns; skip sending as text
BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".webp", ".woff", ".woff2",
    ".ttf", ".otf", ".eot", ".pdf", ".zip", ".tar", ".gz", ".pyc", ".so", ".dll",
    ".exe", ".class", ".jar", ".bin",
})


def safe_read_file(
    project_root: str,
    rel_path: str,
    revision: str | None = None,
) -> tuple[str | None, str | None]:
    """
    Read rel_path at revision (default HEAD) if it's text.
    Returns (content, content_type) or (None, None) if not found or binary.
    """
    ext = os.path.splitext(rel_path)[1].lower()
    if ext in BINARY_EXTENSIONS:
        return None, None
    try:
        raw = read_file_at_revision(
            rel_path.lstrip("/"), revision=revision or None, cwd=project_root,
        )
    except BlameViewError:
        return None, None
    if raw is None:
        return None, None
    # Heuristic: if null byte, treat as binary
    if b"\x00" in raw:
        return None, None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return None, None
    return text, "text/plain; charset=utf-8"
