"""Tests for blame page assembly."""

from blame_view.page import render_page, tree_paths
from blame_view.render import render_blame


class TestTreePaths:
    def test_nested(self):
        assert tree_paths("a/b/c.py") == ["a", "a/b", "a/b/c.py"]

    def test_leading_slash_and_empty(self):
        assert tree_paths("/x.py") == ["x.py"]
        assert tree_paths("") == []


class TestRenderPage:
    def _page(self, **kwargs):
        segments = [
            {"commit_sha": "c1", "content_lines": ["a", "b"]},
            {"commit_sha": "c2", "content_lines": ["<c>"]},
        ]
        result = render_blame(segments, {"c1": "Fix bug", "c2": "Add feature"}, repo_link="/o/r")
        return render_page("docs/<x>.md", "0123456789abcdef", result, repo_link="/o/r", **kwargs)

    def test_contains_all_streams(self):
        page = self._page()
        assert page.startswith("<!DOCTYPE html>")
        assert '<td class="commit-info"><span><a href="/o/r/commit/c1"' in page
        assert '<span id="L3" class="bottom-line">3</span>' in page
        assert '<ol><li class="L1" rel="L1">a\n</li>' in page
        assert "&lt;c&gt;</li></ol>" in page

    def test_links_and_escaping(self):
        page = self._page()
        assert '<a href="/o/r/src/0123456789abcdef/docs">docs</a>' in page
        assert '<a href="/o/r/src/0123456789abcdef/docs/&lt;x&gt;.md">&lt;x&gt;.md</a>' in page
        assert 'href="/o/r/raw/0123456789abcdef/docs/&lt;x&gt;.md"' in page
        assert "<x>" not in page
        assert "Blame: docs/&lt;x&gt;.md @ 0123456789ab</title>" in page

    def test_file_info(self):
        assert "3 lines</span>" in self._page()
        assert "3 lines | 2.0 KiB" in self._page(file_size=2048)
        assert "3 lines | 12 B" in self._page(file_size=12)

    def test_latest_commit_header(self):
        latest = {
            "commit_sha": "f" * 40,
            "author": "Ann <ann@example.com>",
            "author_time": 0,
            "summary": "Fix <tag> & more",
        }
        page = self._page(latest_commit=latest)
        assert f'<a class="sha" href="/o/r/commit/{"f" * 40}">ffffffffff</a>' in page
        assert '<span class="author">Ann &lt;ann@example.com&gt;</span>' in page
        assert '<span class="summary">Fix &lt;tag&gt; &amp; more</span>' in page
        assert '<span class="time">1970-01-01 00:00 UTC</span>' in page

    def test_no_latest_commit_header_without_data(self):
        assert "latest-commit\">" not in self._page()
