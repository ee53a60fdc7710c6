"""
Blame segment source — runs ``git blame --porcelain`` for one file revision.

Parses the porcelain output into per-line records, then groups consecutive
lines that share a commit SHA into segments:

    {
        "commit_sha": "abc123...",
        "start_line": int,         # final line number in the blamed revision
        "end_line": int,
        "content_lines": ["line1", "line2", ...],
        "author": "...",
        "author_time": int | None,
        "summary": "...",
    }

Segments are ordered, contiguous and cover every line of the file once,
which is the shape render.render_blame expects.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Any

from .errors import BlameFailed, NotAGitRepository, RevisionNotFound


logger = logging.getLogger(__name__)

_HEX = frozenset("0123456789abcdef")


# ===================================================================
# Git helpers
# ===================================================================

def _git_bytes(*args: str, cwd: str | None = None) -> bytes | None:
    """Run a git command and return raw stdout bytes, or None on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True, cwd=cwd, timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git %s failed to run: %s", " ".join(args), e)
        return None
    if result.returncode != 0:
        logger.debug("git %s exited %d: %s", " ".join(args), result.returncode,
                     result.stderr.decode("utf-8", errors="replace").strip())
        return None
    return result.stdout


def _git(*args: str, cwd: str | None = None) -> str | None:
    """Run a git command and return stripped UTF-8 stdout, or None on failure."""
    out = _git_bytes(*args, cwd=cwd)
    if out is None:
        return None
    return out.decode("utf-8", errors="replace").strip()


def git_toplevel(cwd: str | None = None) -> str:
    """Return the work tree root containing *cwd*."""
    root = _git("rev-parse", "--show-toplevel", cwd=cwd)
    if root is None:
        raise NotAGitRepository(f"not a git repository: {cwd or os.getcwd()}")
    return root


def resolve_revision(revision: str | None, *, cwd: str | None = None) -> str:
    """Expand a short id, branch, tag or HEAD to the full 40-hex commit id."""
    rev = revision or "HEAD"
    sha = _git("rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}", cwd=cwd)
    if not sha:
        raise RevisionNotFound(rev)
    return sha


def relative_to_root(file_path: str, git_root: str, cwd: str | None = None) -> str:
    """Path of *file_path* (relative to *cwd*) from *git_root*, with forward slashes."""
    base = cwd if cwd else os.getcwd()
    # git reports the toplevel with symlinks resolved
    abs_path = os.path.realpath(os.path.join(base, file_path))
    try:
        rel = os.path.relpath(abs_path, os.path.realpath(git_root))
    except ValueError:
        rel = file_path
    return rel.replace(os.sep, "/")


# ===================================================================
# Git blame porcelain parser
# ===================================================================

def parse_blame_porcelain(raw: bytes | str) -> list[dict[str, Any]]:
    """Parse ``git blame --porcelain`` output into per-line records.

    Lines are split on ``\\n`` only, so ``\\r`` stays part of the content.
    Content is decoded as UTF-8 with undecodable bytes replaced.

    Each record:
        {
            "commit_sha": "abc123...",
            "orig_line": int,
            "final_line": int,
            "content": "line content",
            "author": "...",
            "author_time": int,     # unix timestamp
            "summary": "...",
            "filename": "...",
        }
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    lines = raw.split(b"\n")
    records: list[dict[str, Any]] = []
    commit_info: dict[str, dict[str, Any]] = {}  # sha -> header fields

    i = 0
    while i < len(lines):
        line = lines[i]
        if not line:
            i += 1
            continue

        # Each blamed line starts with: <sha> <orig_line> <final_line> [<num_lines>]
        parts = line.decode("utf-8", errors="replace").split()
        if len(parts) < 3:
            i += 1
            continue

        sha = parts[0]
        if len(sha) != 40 or not all(c in _HEX for c in sha):
            i += 1
            continue

        orig_line = int(parts[1])
        final_line = int(parts[2])
        i += 1

        # Header fields appear only on the first occurrence of a commit
        info = commit_info.setdefault(sha, {})
        while i < len(lines) and not lines[i].startswith(b"\t"):
            hline = lines[i].decode("utf-8", errors="replace")
            if hline.startswith("author "):
                info["author"] = hline[7:]
            elif hline.startswith("author-time "):
                try:
                    info["author_time"] = int(hline[12:])
                except ValueError:
                    pass
            elif hline.startswith("summary "):
                info["summary"] = hline[8:]
            elif hline.startswith("filename "):
                info["filename"] = hline[9:]
            i += 1

        # Content line (starts with \t)
        content = ""
        if i < len(lines) and lines[i].startswith(b"\t"):
            content = lines[i][1:].decode("utf-8", errors="replace")
            i += 1

        records.append({
            "commit_sha": sha,
            "orig_line": orig_line,
            "final_line": final_line,
            "content": content,
            "author": info.get("author", ""),
            "author_time": info.get("author_time"),
            "summary": info.get("summary", ""),
            "filename": info.get("filename", ""),
        })

    return records


# ===================================================================
# Segment grouping
# ===================================================================

def group_into_segments(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Group consecutive blame records that share the same commit SHA."""
    segments: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    for rec in records:
        if (
            current is not None
            and current["commit_sha"] == rec["commit_sha"]
            and current["end_line"] + 1 == rec["final_line"]
        ):
            current["end_line"] = rec["final_line"]
            current["content_lines"].append(rec["content"])
        else:
            if current is not None:
                segments.append(current)
            current = {
                "commit_sha": rec["commit_sha"],
                "start_line": rec["final_line"],
                "end_line": rec["final_line"],
                "content_lines": [rec["content"]],
                "author": rec.get("author", ""),
                "author_time": rec.get("author_time"),
                "summary": rec.get("summary", ""),
            }

    if current is not None:
        segments.append(current)

    return segments


# ===================================================================
# Revision-pinned lookups (root and commit already resolved)
# ===================================================================

def blame_segments_at(rel_path: str, commit_id: str, git_root: str) -> list[dict[str, Any]]:
    """Blame *rel_path* (relative to *git_root*) at the full *commit_id*."""
    raw = _git_bytes("blame", "--porcelain", commit_id, "--", rel_path, cwd=git_root)
    if raw is None:
        raise BlameFailed(f"git blame failed for {rel_path} at {commit_id[:12]}")

    records = parse_blame_porcelain(raw)
    segments = group_into_segments(records)
    logger.debug("blame %s@%s: %d lines in %d segments",
                 rel_path, commit_id[:12], len(records), len(segments))
    return segments


def file_size_at(rel_path: str, commit_id: str, git_root: str) -> int | None:
    """Blob size in bytes of *rel_path* at *commit_id*, or None if absent."""
    out = _git("cat-file", "-s", f"{commit_id}:{rel_path}", cwd=git_root)
    if not out:
        return None
    try:
        return int(out)
    except ValueError:
        return None


def latest_commit_at(rel_path: str, commit_id: str, git_root: str) -> dict[str, Any] | None:
    """Most recent commit touching *rel_path* reachable from *commit_id*.

    Returns ``{"commit_sha", "author", "author_time", "summary"}`` or None.
    """
    out = _git("log", "-1", "--format=%H%x00%an%x00%at%x00%s", commit_id, "--", rel_path,
               cwd=git_root)
    if not out:
        return None
    fields = out.split("\x00")
    if len(fields) != 4:
        return None
    sha, author, author_time, summary = fields
    try:
        timestamp: int | None = int(author_time)
    except ValueError:
        timestamp = None
    return {
        "commit_sha": sha,
        "author": author,
        "author_time": timestamp,
        "summary": summary,
    }


# ===================================================================
# Main entry points
# ===================================================================

def load_blame_segments(
    file_path: str,
    *,
    revision: str | None = None,
    cwd: str | None = None,
) -> list[dict[str, Any]]:
    """Blame *file_path* at *revision* (default HEAD) and return grouped segments.

    *file_path* is resolved against *cwd* and then made relative to the git
    toplevel. An empty file yields an empty list.
    """
    git_root = git_toplevel(cwd)
    commit_id = resolve_revision(revision, cwd=git_root)
    return blame_segments_at(relative_to_root(file_path, git_root, cwd), commit_id, git_root)


def read_file_at_revision(
    file_path: str,
    *,
    revision: str | None = None,
    cwd: str | None = None,
) -> bytes | None:
    """Return the raw bytes of *file_path* at *revision*, or None if absent."""
    git_root = git_toplevel(cwd)
    commit_id = resolve_revision(revision, cwd=git_root)
    rel_path = relative_to_root(file_path, git_root, cwd)
    return _git_bytes("show", f"{commit_id}:{rel_path}", cwd=git_root)
