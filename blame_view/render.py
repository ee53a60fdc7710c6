"""
Blame annotation renderer.

Turns an ordered list of blame segments (runs of lines attributed to one
commit) into three index-aligned lists of HTML fragments:

  - ``commit_info``  — attribution cell per line (label on a run's first line,
                       zero-width placeholder on the rest)
  - ``line_numbers`` — anchored 1-based line number per line
  - ``code_lines``   — escaped line content per line

The last line of every segment carries the ``bottom-line`` class in all
three streams so the page can draw a separator between runs.

Pure functions only — no I/O, no shared state.
"""

from __future__ import annotations

import html
from typing import Any

from .errors import InvalidRunPartition

BOUNDARY_CLASS = "bottom-line"
PLACEHOLDER = "&#8203;"


# ===================================================================
# Partition validation
# ===================================================================

def validate_segments(segments: list[dict[str, Any]]) -> None:
    """Raise InvalidRunPartition unless *segments* partition the file cleanly.

    Shape is always checked (``commit_sha`` present, ``content_lines`` a list).
    Line positions are checked only for segments that carry
    ``start_line``/``end_line``: each must span exactly its line count and
    begin right after the previous segment (the first at line 1).
    """
    expected_start = 1
    for index, seg in enumerate(segments):
        if not isinstance(seg, dict) or not seg.get("commit_sha"):
            raise InvalidRunPartition(f"segment {index}: missing commit_sha")
        lines = seg.get("content_lines")
        if not isinstance(lines, list):
            raise InvalidRunPartition(f"segment {index}: content_lines must be a list")

        start = seg.get("start_line")
        end = seg.get("end_line")
        if start is not None and end is not None and lines:
            if start != expected_start:
                raise InvalidRunPartition(
                    f"segment {index}: starts at line {start}, expected {expected_start}"
                )
            if end - start + 1 != len(lines):
                raise InvalidRunPartition(
                    f"segment {index}: lines {start}-{end} but {len(lines)} content lines"
                )
        expected_start += len(lines)


# ===================================================================
# Cell fragments
# ===================================================================

def _class_attr(is_last: bool) -> str:
    return f' class="{BOUNDARY_CLASS}"' if is_last else ""


def _commit_cell(sha: str, label: str, repo_link: str, is_first: bool, is_last: bool) -> str:
    attr = _class_attr(is_last)
    if not is_first:
        return f"<span{attr}>{PLACEHOLDER}</span>"
    escaped = html.escape(label, quote=True)
    href = html.escape(f"{repo_link}/commit/{sha}", quote=True)
    return f'<span{attr}><a href="{href}" title="{escaped}">{escaped}</a></span>'


def _line_number_cell(number: int, is_last: bool) -> str:
    return f'<span id="L{number}"{_class_attr(is_last)}>{number}</span>'


def _code_cell(number: int, text: str, is_last: bool, is_final_line: bool) -> str:
    content = html.escape(text, quote=True)
    if not is_final_line:
        content += "\n"
    css = f"L{number} {BOUNDARY_CLASS}" if is_last else f"L{number}"
    return f'<li class="{css}" rel="L{number}">{content}</li>'


# ===================================================================
# Main entry point
# ===================================================================

def render_blame(
    segments: list[dict[str, Any]],
    commit_names: dict[str, str],
    *,
    repo_link: str = "",
    validate: bool = False,
) -> dict[str, list[str]]:
    """Render blame segments into three aligned fragment lists.

    Parameters
    ----------
    segments : list[dict]
        Ordered runs; each has ``commit_sha`` and ``content_lines``.
    commit_names : dict[str, str]
        Display label per commit sha. Missing shas render an empty label.
    repo_link : str
        Prefix for commit links (``{repo_link}/commit/{sha}``).
    validate : bool
        Run validate_segments first and raise InvalidRunPartition on bad input.

    Returns
    -------
    dict
        ``{"commit_info": [...], "line_numbers": [...], "code_lines": [...]}``,
        each with one entry per line of the file.
    """
    if validate:
        validate_segments(segments)

    total = sum(len(seg.get("content_lines") or []) for seg in segments)

    commit_info: list[str] = []
    line_numbers: list[str] = []
    code_lines: list[str] = []

    i = 0
    for seg in segments:
        sha = seg.get("commit_sha", "")
        lines = seg.get("content_lines") or []
        label = commit_names.get(sha, "")
        last_index = len(lines) - 1
        for index, line in enumerate(lines):
            i += 1
            is_last = index == last_index
            commit_info.append(_commit_cell(sha, label, repo_link, index == 0, is_last))
            line_numbers.append(_line_number_cell(i, is_last))
            code_lines.append(_code_cell(i, line, is_last, i == total))

    return {
        "commit_info": commit_info,
        "line_numbers": line_numbers,
        "code_lines": code_lines,
    }
