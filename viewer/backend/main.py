#!/usr/bin/env python3
"""
blame-view viewer backend — stdlib HTTP server.

Serves:
  - /api/health  — health check
  - /api/blame   — blame streams as JSON (?path=...&rev=...)
  - /blame       — blame page as HTML (?path=...&rev=...)
  - /raw         — file text at a revision (?path=...&rev=...)

Bind: 127.0.0.1:8765 by default (settings host/port). Project root passed
as first CLI arg (default: cwd).
"""
from __future__ import annotations

import json
import logging
import os
import sys
from http.server import HTTPServer, BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse

from blame_view.config import get_settings

logger = logging.getLogger(__name__)


class ViewerServer(HTTPServer):
    """HTTPServer bound to one project directory."""

    def __init__(self, address: tuple[str, int], project_root: str):
        self.project_root = os.path.abspath(project_root)
        super().__init__(address, ViewerHandler)


class ViewerHandler(BaseHTTPRequestHandler):
    server: ViewerServer

    def _send_json(self, data: dict, status: int = 200):
        body = json.dumps(data).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_text(self, text: str, content_type: str, status: int = 200):
        body = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error_json(self, message: str, status: int = 400):
        self._send_json({"error": message}, status=status)

    def _query(self) -> tuple[str, str]:
        query = parse_qs(urlparse(self.path).query)
        path = (query.get("path") or [""])[0]
        rev = (query.get("rev") or [""])[0]
        return path, rev

    def _api_health(self):
        self._send_json({"status": "ok"})

    def _api_blame(self):
        from .routes.blame_route import get_blame
        path, rev = self._query()
        if not path:
            self._send_error_json("path required", status=400)
            return
        data, err, status = get_blame(self.server.project_root, path, rev)
        if data is not None:
            self._send_json(data)
            return
        self._send_error_json(err or "blame failed", status=status)

    def _blame_page(self):
        from .routes.blame_route import get_blame_page
        path, rev = self._query()
        if not path:
            self._send_text("path required\n", "text/plain; charset=utf-8", status=400)
            return
        page, err, status = get_blame_page(self.server.project_root, path, rev)
        if page is None:
            self._send_text(f"{err or 'blame failed'}\n", "text/plain; charset=utf-8", status=status)
            return
        self._send_text(page, "text/html; charset=utf-8")

    def _raw(self):
        from .routes.blame_route import resolve_path
        from .routes.file_route import safe_read_file
        path, rev = self._query()
        if not path:
            self._send_error_json("path required", status=400)
            return
        if resolve_path(self.server.project_root, path) is None:
            self._send_error_json("path outside project", status=400)
            return
        content, content_type = safe_read_file(self.server.project_root, path, rev)
        if content is None:
            self._send_error_json("file not found or binary", status=404)
            return
        self._send_text(content, content_type or "text/plain; charset=utf-8")

    def do_GET(self):
        path = urlparse(self.path).path.rstrip("/")
        if path == "/api/health":
            self._api_health()
        elif path == "/api/blame":
            self._api_blame()
        elif path == "/blame":
            self._blame_page()
        elif path == "/raw":
            self._raw()
        else:
            self._send_error_json("not found", status=404)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(project_root: str, host: str | None = None, port: int | None = None) -> ViewerServer:
    """Create (but do not start) a viewer server for *project_root*."""
    settings = get_settings(project_root)
    host = host if host is not None else settings["host"]
    port = port if port is not None else settings["port"]
    return ViewerServer((host, port), project_root)


def serve(project_root: str, host: str | None = None, port: int | None = None) -> None:
    """Run the viewer until interrupted."""
    server = make_server(project_root, host, port)
    bound_host, bound_port = server.server_address[:2]
    print(f"Viewer: http://{bound_host}:{bound_port} (project: {server.project_root})")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


def main():
    project_arg = (sys.argv[1:] or [None])[0]
    project_root = os.getcwd()
    if project_arg and os.path.isdir(project_arg):
        project_root = os.path.abspath(project_arg)
    serve(project_root)


if __name__ == "__main__":
    main()
