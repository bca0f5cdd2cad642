from __future__ import annotations

import os
from pathlib import Path


def _app_config_dir() -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "memopages"
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base_dir = Path(xdg_config) if xdg_config else (Path.home() / ".config")
    return base_dir / "memopages"


def get_settings_file_path() -> Path:
    return _app_config_dir() / "settings.json"


def get_crash_logs_file_path() -> Path:
    return _app_config_dir() / "crash_tracebacks.log"
