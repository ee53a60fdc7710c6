"""
Commit label resolution — maps each commit SHA in a blame to a display label.

Each distinct SHA is looked up once, concurrently, and the resulting map is
complete before it is handed to the renderer. A failed lookup either
degrades to an empty label or aborts, depending on *on_error*.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from .blame import _git
from .errors import RevisionNotFound

logger = logging.getLogger(__name__)

DEFAULT_LABEL_FORMAT = "%B"
ON_ERROR_CHOICES = ("empty", "abort")

Fetcher = Callable[[str, "str | None"], "str | None"]


def distinct_commits(segments: list[dict[str, Any]]) -> list[str]:
    """Distinct commit SHAs in order of first appearance."""
    seen: dict[str, None] = {}
    for seg in segments:
        sha = seg.get("commit_sha")
        if sha and sha not in seen:
            seen[sha] = None
    return list(seen)


def git_commit_label(sha: str, cwd: str | None = None, label_format: str = DEFAULT_LABEL_FORMAT) -> str | None:
    """Read a commit's label via ``git show -s --format=...``; None if unknown."""
    out = _git("show", "-s", f"--format={label_format}", sha, cwd=cwd)
    if out is None:
        return None
    return out.strip()


def resolve_commit_names(
    segments: list[dict[str, Any]],
    *,
    cwd: str | None = None,
    fetch: Fetcher | None = None,
    label_format: str = DEFAULT_LABEL_FORMAT,
    on_error: str = "empty",
    max_workers: int = 4,
) -> dict[str, str]:
    """Resolve every distinct commit in *segments* to its label.

    *fetch(sha, cwd)* returns the label or None when the commit cannot be
    read; it defaults to git_commit_label with *label_format*.
    """
    if on_error not in ON_ERROR_CHOICES:
        raise ValueError(f"on_error must be one of {ON_ERROR_CHOICES}, got {on_error!r}")

    if fetch is None:
        def fetch(sha: str, cwd: str | None) -> str | None:
            return git_commit_label(sha, cwd, label_format)

    shas = distinct_commits(segments)
    if not shas:
        return {}

    workers = max(1, min(max_workers, len(shas)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        labels = list(pool.map(lambda sha: fetch(sha, cwd), shas))

    names: dict[str, str] = {}
    for sha, label in zip(shas, labels):
        if label is None:
            if on_error == "abort":
                raise RevisionNotFound(sha, "label lookup failed")
            logger.warning("no label for commit %s; rendering empty label", sha[:12])
            label = ""
        names[sha] = label
    return names
