"""
Blame page assembly — wraps the three rendered streams in an HTML document.

Layout follows a code view: breadcrumb header, latest-commit row, raw-file
link, then a three-column table (commit info, line numbers, code). Rows of a
segment are separated from the next segment via the ``bottom-line`` class.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Any

_STYLE = """
body { font-family: sans-serif; margin: 1em; }
.blame { border-collapse: collapse; width: 100%; }
.blame td { vertical-align: top; padding: 0; }
.blame .commit-info, .blame .line-num, .blame .code { font-family: monospace; white-space: pre; line-height: 20px; }
.blame .commit-info span, .blame .line-num span { display: block; height: 20px; overflow: hidden; }
.blame .commit-info { max-width: 25em; padding-right: 1em; }
.blame .line-num { text-align: right; color: #999; padding-right: 0.5em; }
.blame ol { list-style: none; margin: 0; padding: 0; }
.blame li { height: 20px; }
.blame .bottom-line { border-bottom: 1px solid #ddd; }
.latest-commit { margin: 0.5em 0; }
.latest-commit .sha { font-family: monospace; }
"""


def tree_paths(tree_path: str) -> list[str]:
    """Breadcrumb prefixes: "a/b/c.py" -> ["a", "a/b", "a/b/c.py"]."""
    names = [n for n in tree_path.strip("/").split("/") if n]
    return ["/".join(names[: i + 1]) for i in range(len(names))]


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


def _breadcrumbs(file_path: str, revision: str, repo_link: str) -> str:
    parts = []
    for prefix in tree_paths(file_path):
        name = prefix.rsplit("/", 1)[-1]
        href = html.escape(f"{repo_link}/src/{revision}/{prefix}", quote=True)
        parts.append(f'<a href="{href}">{html.escape(name)}</a>')
    return " / ".join(parts)


def _latest_commit(commit: dict[str, Any] | None, repo_link: str) -> str:
    """Header row naming the last commit that touched the file."""
    if not commit or not commit.get("commit_sha"):
        return ""
    sha = commit["commit_sha"]
    href = html.escape(f"{repo_link}/commit/{sha}", quote=True)
    parts = [
        f'<a class="sha" href="{href}">{html.escape(sha[:10])}</a>',
        f'<span class="author">{html.escape(commit.get("author") or "")}</span>',
        f'<span class="summary">{html.escape(commit.get("summary") or "")}</span>',
    ]
    when = commit.get("author_time")
    if when is not None:
        stamp = datetime.fromtimestamp(when, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        parts.append(f'<span class="time">{stamp}</span>')
    return f'<div class="latest-commit">{" ".join(parts)}</div>\n'


def render_page(
    file_path: str,
    revision: str,
    result: dict[str, list[str]],
    *,
    repo_link: str = "",
    file_size: int | None = None,
    latest_commit: dict[str, Any] | None = None,
) -> str:
    """Return a complete HTML blame page for one file revision."""
    title = html.escape(f"Blame: {file_path} @ {revision[:12]}")
    raw_href = html.escape(f"{repo_link}/raw/{revision}/{file_path.lstrip('/')}", quote=True)
    line_count = len(result.get("code_lines", []))

    meta = [f"{line_count} lines"]
    if file_size is not None:
        meta.append(_format_size(file_size))

    return "".join([
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">",
        f"<title>{title}</title><style>{_STYLE}</style></head><body>\n",
        f'<div class="breadcrumbs">{_breadcrumbs(file_path, revision, repo_link)}</div>\n',
        _latest_commit(latest_commit, repo_link),
        f'<div class="file-header"><span class="file-info">{html.escape(" | ".join(meta))}</span> ',
        f'<a class="raw" href="{raw_href}">Raw</a></div>\n',
        '<table class="blame"><tbody><tr>',
        f'<td class="commit-info">{"".join(result.get("commit_info", []))}</td>',
        f'<td class="line-num">{"".join(result.get("line_numbers", []))}</td>',
        f'<td class="code"><ol>{"".join(result.get("code_lines", []))}</ol></td>',
        "</tr></tbody></table>\n</body></html>\n",
    ])
