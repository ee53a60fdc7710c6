"""Tests for the viewer HTTP backend."""

import json
import threading
import urllib.error
import urllib.request
from urllib.parse import urlencode

import pytest

from viewer.backend.main import make_server
from viewer.backend.routes.blame_route import get_blame, resolve_path

from conftest import requires_git


class TestResolvePath:
    def test_inside(self, tmp_path):
        assert resolve_path(str(tmp_path), "src/a.py") == str(tmp_path / "src" / "a.py")

    def test_traversal(self, tmp_path):
        assert resolve_path(str(tmp_path), "../etc/passwd") is None
        assert resolve_path(str(tmp_path / "proj"), "../proj-other/x") is None


@pytest.fixture
def server(git_repo):
    srv = make_server(git_repo["path"], host="127.0.0.1", port=0)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()


def _get(server, route, **params):
    host, port = server.server_address[:2]
    url = f"http://{host}:{port}{route}"
    if params:
        url += "?" + urlencode(params)
    try:
        with urllib.request.urlopen(url, timeout=10) as resp:
            return resp.status, resp.headers.get("Content-Type"), resp.read().decode()
    except urllib.error.HTTPError as e:
        return e.code, e.headers.get("Content-Type"), e.read().decode()


@requires_git
class TestRoutes:
    def test_get_blame_outside_project(self, git_repo):
        data, err, status = get_blame(git_repo["path"], "../x.py")
        assert data is None
        assert status == 400

    def test_health(self, server):
        status, _, body = _get(server, "/api/health")
        assert status == 200
        assert json.loads(body) == {"status": "ok"}

    def test_api_blame(self, server, git_repo):
        status, ctype, body = _get(server, "/api/blame", path="src/app.py")
        assert status == 200
        assert ctype.startswith("application/json")
        data = json.loads(body)
        assert data["revision"] == git_repo["second"]
        assert len(data["commit_info"]) == len(data["line_numbers"]) == len(data["code_lines"]) == 5
        assert data["commit_names"] == {
            git_repo["first"]: "Initial import",
            git_repo["second"]: "Add markup line",
        }
        assert ">Initial import</a>" in data["commit_info"][0]
        assert "&#8203;" in data["commit_info"][1]
        assert data["code_lines"][2] == '<li class="L3 bottom-line" rel="L3">&lt;b&gt;&amp;\n</li>'
        assert data["code_lines"][4] == '<li class="L5 bottom-line" rel="L5">fourth</li>'

    def test_api_blame_at_revision(self, server, git_repo):
        status, _, body = _get(server, "/api/blame", path="src/app.py", rev=git_repo["first"][:10])
        assert status == 200
        data = json.loads(body)
        assert data["revision"] == git_repo["first"]
        assert len(data["code_lines"]) == 3

    def test_api_blame_errors(self, server):
        assert _get(server, "/api/blame")[0] == 400
        assert _get(server, "/api/blame", path="../outside.py")[0] == 400
        status, _, body = _get(server, "/api/blame", path="src/missing.py")
        assert status == 404
        assert "error" in json.loads(body)
        assert _get(server, "/api/blame", path="src/app.py", rev="no-such-branch")[0] == 404

    def test_blame_page(self, server):
        status, ctype, body = _get(server, "/blame", path="src/app.py")
        assert status == 200
        assert ctype.startswith("text/html")
        assert '<table class="blame">' in body
        assert '<span id="L5" class="bottom-line">5</span>' in body

    def test_blame_page_at_revision_shows_file_metadata(self, server, git_repo):
        status, _, body = _get(server, "/blame", path="src/app.py", rev=git_repo["first"])
        assert status == 200
        assert "3 lines | 19 B" in body
        assert '<div class="latest-commit">' in body
        assert f"/commit/{git_repo['first']}\">{git_repo['first'][:10]}</a>" in body

    def test_raw(self, server, git_repo):
        status, _, body = _get(server, "/raw", path="src/app.py", rev=git_repo["first"])
        assert status == 200
        assert body == "first\nsecond\nthird\n"
        assert _get(server, "/raw", path="src/missing.py")[0] == 404
        assert _get(server, "/raw", path="logo.png")[0] == 404

    def test_unknown_route(self, server):
        assert _get(server, "/nope")[0] == 404
