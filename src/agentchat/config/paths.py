"""Where config files live.

Layers are read lowest priority first: system, user, then project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "agentchat"
PROJECT_DIR = ".agentchat"


def _env_dir(var: str) -> Path | None:
    value = os.environ.get(var)
    return Path(value) if value else None


def get_system_config_path() -> Path | None:
    if sys.platform == "win32":
        base = _env_dir("PROGRAMDATA")
        return base / APP_NAME / CONFIG_FILENAME if base else None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """User config under APPDATA on Windows, XDG config home elsewhere."""
    if sys.platform == "win32":
        base = _env_dir("APPDATA")
    else:
        base = _env_dir("XDG_CONFIG_HOME") or Path.home() / ".config"
    return base / APP_NAME / CONFIG_FILENAME if base else None


def get_project_config_path(project_root: str | Path) -> Path:
    return Path(project_root) / PROJECT_DIR / CONFIG_FILENAME


def get_config_paths(project_root: str | Path | None = None) -> list[Path]:
    """Candidate config files, lowest priority first. Files may not exist."""
    paths = [p for p in (get_system_config_path(), get_user_config_path()) if p]
    if project_root:
        paths.append(get_project_config_path(project_root))
    return paths
