"""Shared application settings helpers."""

from .defaults import SETTINGS_SCHEMA, build_default_settings
from .paths import get_crash_logs_file_path, get_settings_file_path
from .store import MemoSettings, SettingsStore, primitive_kind

__all__ = [
    "SETTINGS_SCHEMA",
    "MemoSettings",
    "SettingsStore",
    "build_default_settings",
    "get_crash_logs_file_path",
    "get_settings_file_path",
    "primitive_kind",
]
