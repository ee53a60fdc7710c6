"""
Error types raised by blame-view operations.

Git helpers return ``None`` on failure; the public operations map those
failures onto the classes below so callers can tell a missing revision
from a broken repository.
"""

from __future__ import annotations


class BlameViewError(Exception):
    """Base class for every error blame-view raises on purpose."""


class InvalidRunPartition(BlameViewError):
    """Blame segments do not form a contiguous, non-overlapping partition."""


class NotAGitRepository(BlameViewError):
    """The working directory is not inside a git work tree."""


class RevisionNotFound(BlameViewError):
    """A revision (commit id, branch, tag) could not be resolved."""

    def __init__(self, revision: str, detail: str | None = None):
        self.revision = revision
        message = f"revision not found: {revision}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class BlameFailed(BlameViewError):
    """``git blame`` did not produce output for the requested file."""
