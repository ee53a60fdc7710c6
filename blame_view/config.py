"""
Configuration management for blame-view.

Global config:  ~/.blame-view/config.json
Project config: .blame-view/config.json

Settings resolve in this order (first wins):
  1. BLAME_VIEW_* environment variables (and the install-dir .env)
  2. Project config
  3. Global config
  4. DEFAULTS

No external dependencies — stdlib only.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from .labels import ON_ERROR_CHOICES

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Load .env from the install directory (if present)
# -------------------------------------------------------------------

def _load_dotenv():
    """Read key=value pairs from the .env at the project install root."""
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            # Real env wins
            os.environ.setdefault(key, value)
    except OSError as e:
        logger.debug("could not read %s: %s", env_path, e)

_load_dotenv()


# -------------------------------------------------------------------
# Paths and defaults
# -------------------------------------------------------------------

GLOBAL_CONFIG_DIR = Path.home() / ".blame-view"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / "config.json"

PROJECT_CONFIG_DIR_NAME = ".blame-view"
PROJECT_CONFIG_FILE_NAME = "config.json"

DEFAULTS: dict[str, Any] = {
    "repo_link": "",
    "label_format": "%B",
    "on_missing_label": "empty",
    "host": "127.0.0.1",
    "port": 8765,
    "validate": False,
}

ENV_VARS = {
    "repo_link": "BLAME_VIEW_REPO_LINK",
    "label_format": "BLAME_VIEW_LABEL_FORMAT",
    "on_missing_label": "BLAME_VIEW_ON_MISSING_LABEL",
    "host": "BLAME_VIEW_HOST",
    "port": "BLAME_VIEW_PORT",
    "validate": "BLAME_VIEW_VALIDATE",
}

# Settings restricted to a fixed set of values
CHOICES: dict[str, tuple[str, ...]] = {
    "on_missing_label": ON_ERROR_CHOICES,
}


def _read_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


# -------------------------------------------------------------------
# Global config
# -------------------------------------------------------------------

def get_global_config() -> dict:
    """Load ~/.blame-view/config.json (returns {} if missing)."""
    return _read_json(GLOBAL_CONFIG_FILE) or {}


def save_global_config(config: dict) -> None:
    """Write ~/.blame-view/config.json."""
    GLOBAL_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    GLOBAL_CONFIG_FILE.write_text(json.dumps(config, indent=2) + "\n")


# -------------------------------------------------------------------
# Project config
# -------------------------------------------------------------------

def _project_config_path(project_dir: str | None = None) -> Path:
    if project_dir is None:
        project_dir = os.getcwd()
    return Path(project_dir) / PROJECT_CONFIG_DIR_NAME / PROJECT_CONFIG_FILE_NAME


def get_project_config(project_dir: str | None = None) -> dict | None:
    """Load .blame-view/config.json.  Returns None when absent."""
    return _read_json(_project_config_path(project_dir))


def save_project_config(config: dict, project_dir: str | None = None) -> None:
    """Write .blame-view/config.json and update .gitignore."""
    if project_dir is None:
        project_dir = os.getcwd()

    config_dir = Path(project_dir) / PROJECT_CONFIG_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / PROJECT_CONFIG_FILE_NAME).write_text(
        json.dumps(config, indent=2) + "\n"
    )

    _ensure_gitignore(project_dir)


def _ensure_gitignore(project_dir: str) -> None:
    """Add .blame-view/ to .gitignore if not already present."""
    gitignore = Path(project_dir) / ".gitignore"
    marker = f"{PROJECT_CONFIG_DIR_NAME}/"

    if gitignore.exists():
        content = gitignore.read_text()
        if marker not in content:
            with open(gitignore, "a") as f:
                if content and not content.endswith("\n"):
                    f.write("\n")
                f.write(f"{marker}\n")
    else:
        gitignore.write_text(f"{marker}\n")


# -------------------------------------------------------------------
# Resolved settings
# -------------------------------------------------------------------

def _coerce(key: str, value: Any) -> Any:
    """Coerce a raw setting to the type of its default."""
    default = DEFAULTS[key]
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("invalid %s=%r; using %r", key, value, default)
            return default
    value = str(value)
    choices = CHOICES.get(key)
    if choices is not None and value not in choices:
        logger.warning("invalid %s=%r (expected one of %s); using %r",
                       key, value, ", ".join(choices), default)
        return default
    return value


def get_settings(project_dir: str | None = None) -> dict[str, Any]:
    """Resolve every known setting for *project_dir*."""
    global_cfg = get_global_config()
    project_cfg = get_project_config(project_dir) or {}

    settings: dict[str, Any] = {}
    for key, default in DEFAULTS.items():
        env = os.environ.get(ENV_VARS[key])
        if env:
            raw = env
        elif key in project_cfg:
            raw = project_cfg[key]
        elif key in global_cfg:
            raw = global_cfg[key]
        else:
            raw = default
        settings[key] = _coerce(key, raw)

    settings["repo_link"] = settings["repo_link"].rstrip("/")
    return settings
