"""
blame-view CLI — render line-by-line blame annotation for a file revision.

Zero external dependencies — uses only the Python standard library.

Commands:
    blame-view render <file>             Print the blame page (HTML) or --json streams
    blame-view serve                     Run the viewer HTTP server
    blame-view config show               Show resolved settings
    blame-view config set <key> <value>  Write a project (or --global) setting
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from .annotate import annotate_file
from .config import (
    CHOICES,
    DEFAULTS,
    get_global_config,
    get_project_config,
    get_settings,
    save_global_config,
    save_project_config,
)
from .errors import BlameViewError
from .logging_utils import configure_logging
from .page import render_page

VERSION = "0.1.0"


def _fail(command: str, message: str) -> None:
    print(f"blame-view {command}: {message}", file=sys.stderr)
    sys.exit(1)


# ===================================================================
# render
# ===================================================================

def cmd_render(args):
    """Blame a file and print the page or JSON streams."""
    project_dir = os.getcwd()
    if not os.path.isfile(args.file) and args.rev is None:
        _fail("render", f"file not found: {args.file}")

    settings = get_settings(project_dir)
    if args.repo_link is not None:
        settings["repo_link"] = args.repo_link.rstrip("/")
    if args.validate:
        settings["validate"] = True

    try:
        data = annotate_file(
            args.file,
            revision=args.rev,
            project_dir=project_dir,
            settings=settings,
        )
    except BlameViewError as e:
        _fail("render", str(e))
        return

    if args.json:
        print(json.dumps(data, indent=2))
        return

    print(render_page(
        data["path"],
        data["revision"],
        data,
        repo_link=settings["repo_link"],
        file_size=data["file_size"],
        latest_commit=data["latest_commit"],
    ), end="")


# ===================================================================
# serve
# ===================================================================

def cmd_serve(args):
    """Run the viewer for a project directory."""
    project_path = args.project or os.getcwd()
    if not os.path.isdir(project_path):
        _fail("serve", f"project path is not a directory: {project_path}")

    from viewer.backend.main import serve

    serve(os.path.abspath(project_path), host=args.host, port=args.port)


# ===================================================================
# config
# ===================================================================

def cmd_config(args):
    action = getattr(args, "config_action", None)

    if action == "show":
        settings = get_settings(os.getcwd())
        print("blame-view settings\n")
        for key, value in settings.items():
            print(f"  {key:<18} {value!r}")
        print()

    elif action == "set":
        if args.key not in DEFAULTS:
            _fail("config", f"unknown key {args.key!r} (expected one of: {', '.join(DEFAULTS)})")
        choices = CHOICES.get(args.key)
        if choices is not None and args.value not in choices:
            _fail("config", f"invalid value {args.value!r} for {args.key} (expected one of: {', '.join(choices)})")
        if args.global_:
            config = get_global_config()
            config[args.key] = args.value
            save_global_config(config)
            print(f"Set {args.key} in ~/.blame-view/config.json")
        else:
            config = get_project_config() or {}
            config[args.key] = args.value
            save_project_config(config)
            print(f"Set {args.key} in .blame-view/config.json")

    else:
        print("Usage: blame-view config {show,set}")


# ===================================================================
# Entry point
# ===================================================================

def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog="blame-view",
        description="blame-view — line-by-line blame annotation",
    )
    parser.add_argument(
        "--version", action="version", version=f"blame-view {VERSION}",
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=False,
                        help="Enable debug logging")
    parser.add_argument("--log-file", default=None,
                        help="Also write log records to this file")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # render <file>
    sub_render = sub.add_parser("render", help="Render blame for a file")
    sub_render.add_argument("file", help="File path to blame")
    sub_render.add_argument("--rev", "-r", default=None,
                            help="Revision to blame (default: HEAD)")
    fmt = sub_render.add_mutually_exclusive_group()
    fmt.add_argument("--html", action="store_true",
                     help="Output an HTML page (default)")
    fmt.add_argument("--json", action="store_true", default=False,
                     help="Output the rendered streams as JSON")
    sub_render.add_argument("--validate", action="store_true", default=False,
                            help="Check the blame partition before rendering")
    sub_render.add_argument("--repo-link", default=None,
                            help="URL prefix for commit/src/raw links")

    # serve [--project /path]
    sub_serve = sub.add_parser("serve", help="Run the viewer HTTP server")
    sub_serve.add_argument("--project", "-p", default=None,
                           help="Project directory (default: current directory)")
    sub_serve.add_argument("--host", default=None, help="Bind address")
    sub_serve.add_argument("--port", type=int, default=None, help="Bind port")

    # config {show,set}
    sub_config = sub.add_parser("config", help="Show or change settings")
    config_sub = sub_config.add_subparsers(dest="config_action", metavar="ACTION")
    config_sub.add_parser("show", help="Show resolved settings")
    config_set = config_sub.add_parser("set", help="Write a setting")
    config_set.add_argument("key", help="Setting name")
    config_set.add_argument("value", help="Setting value")
    config_set.add_argument("--global", dest="global_", action="store_true", default=False,
                            help="Write to ~/.blame-view/config.json")

    args = parser.parse_args(argv)

    configure_logging(
        "DEBUG" if args.verbose else "WARNING",
        Path(args.log_file) if args.log_file else None,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    dispatch = {
        "render": cmd_render,
        "serve": cmd_serve,
        "config": cmd_config,
    }
    dispatch[args.command](args)


if __name__ == "__main__":
    main()
