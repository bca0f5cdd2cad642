from __future__ import annotations

from pathlib import Path

DEFAULT_FONT_SIZE = 16
DEFAULT_FONT_FAMILY = "Yu Gothic UI"
DEFAULT_ENCODING = "UTF8"
DEFAULT_FILE_SIZE_WARNING_BYTES = 1 * 1024 * 1024
DEFAULT_AUTO_SAVE_SPAN_MIN = 5

# Every key is required in a settings payload and must hold a non-null value of this kind.
SETTINGS_SCHEMA: dict[str, str] = {
    "save_dir": "string",
    "font_size": "number",
    "font_family": "string",
    "always_on_top": "boolean",
    "encoding": "string",
    "auto_encoding": "boolean",
    "file_size_warning_bytes": "number",
    "load_last_file": "boolean",
    "no_close_dialog": "boolean",
    "auto_save": "boolean",
    "auto_save_span_min": "number",
    "auto_lock": "boolean",
}


def build_default_settings(save_dir: str | None = None) -> dict:
    return {
        "save_dir": str(save_dir) if save_dir else str(Path.home()),
        "font_size": DEFAULT_FONT_SIZE,
        "font_family": DEFAULT_FONT_FAMILY,
        "always_on_top": True,
        "encoding": DEFAULT_ENCODING,
        "auto_encoding": True,
        "file_size_warning_bytes": DEFAULT_FILE_SIZE_WARNING_BYTES,
        "load_last_file": False,
        "no_close_dialog": False,
        "auto_save": False,
        "auto_save_span_min": DEFAULT_AUTO_SAVE_SPAN_MIN,
        "auto_lock": False,
    }
