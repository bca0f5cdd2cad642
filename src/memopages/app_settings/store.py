from __future__ import annotations

import dataclasses
import json
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ..core.encoding import is_persistable_encoding
from ..core.errors import MemoError, classify_os_error
from ..logging_utils import get_logger
from .defaults import SETTINGS_SCHEMA, build_default_settings

_LOGGER = get_logger(__name__)


def is_positive_number(value: int | float) -> bool:
    # json.loads accepts Infinity and NaN; neither is a usable size.
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value > 0


def primitive_kind(value: object) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


@dataclass(frozen=True)
class MemoSettings:
    save_dir: str
    font_size: int | float
    font_family: str
    always_on_top: bool
    encoding: str
    auto_encoding: bool
    file_size_warning_bytes: int | float
    load_last_file: bool
    no_close_dialog: bool
    auto_save: bool
    auto_save_span_min: int | float
    auto_lock: bool

    @classmethod
    def from_payload(cls, payload: Mapping) -> "MemoSettings":
        return cls(**{key: payload[key] for key in SETTINGS_SCHEMA})

    def as_payload(self) -> dict:
        return dataclasses.asdict(self)


class SettingsStore:
    """Holds the current settings record and swaps it only for a validated one."""

    def __init__(self, settings: MemoSettings | None = None) -> None:
        self._settings = settings or MemoSettings.from_payload(build_default_settings())

    @property
    def settings(self) -> MemoSettings:
        return self._settings

    def get(self) -> dict:
        return self._settings.as_payload()

    def validate(self, payload: object) -> MemoError:
        structural = self._validate_structure(payload)
        if not structural.ok:
            return structural
        if not os.path.isdir(payload["save_dir"]):
            return MemoError.DIRECTORY_NOT_FOUND
        if not is_positive_number(payload["font_size"]):
            return MemoError.INVALID_FONT_SIZE
        if not is_persistable_encoding(payload["encoding"]):
            return MemoError.INVALID_PARAMETER
        for key in ("file_size_warning_bytes", "auto_save_span_min"):
            if not is_positive_number(payload[key]):
                return MemoError.INVALID_PARAMETER
        return MemoError.OK

    @staticmethod
    def _validate_structure(payload: object) -> MemoError:
        if payload is None or not isinstance(payload, Mapping):
            _LOGGER.debug("settings rejected: payload is not a mapping")
            return MemoError.GENERIC_ERROR
        if len(payload) != len(SETTINGS_SCHEMA):
            _LOGGER.debug("settings rejected: %d keys, expected %d", len(payload), len(SETTINGS_SCHEMA))
            return MemoError.GENERIC_ERROR
        for key, value in payload.items():
            if key not in SETTINGS_SCHEMA:
                _LOGGER.debug("settings rejected: unknown key=%s", key)
                return MemoError.GENERIC_ERROR
            if value is None:
                _LOGGER.debug("settings rejected: null value key=%s", key)
                return MemoError.GENERIC_ERROR
            if primitive_kind(value) != SETTINGS_SCHEMA[key]:
                _LOGGER.debug("settings rejected: key=%s kind=%s", key, primitive_kind(value))
                return MemoError.GENERIC_ERROR
        return MemoError.OK

    def set(self, payload: object) -> MemoError:
        result = self.validate(payload)
        if result.ok:
            self._settings = MemoSettings.from_payload(payload)
        else:
            _LOGGER.warning("Settings not applied: %s", result.name)
        return result

    def update(self, **changes) -> MemoError:
        payload = self.get()
        payload.update(changes)
        return self.set(payload)

    def load(self, path: str | os.PathLike) -> MemoError:
        settings_path = Path(path)
        try:
            text = settings_path.read_text(encoding="utf-8")
        except OSError as exc:
            error = classify_os_error(exc)
            _LOGGER.warning('Settings file not read: "%s" - %s', settings_path, error.name)
            return error
        except ValueError:
            _LOGGER.exception("SettingsStore.load could not decode path=%s", settings_path)
            return MemoError.GENERIC_ERROR
        try:
            payload = json.loads(text)
        except ValueError:
            _LOGGER.exception("SettingsStore.load failed to parse path=%s", settings_path)
            return MemoError.GENERIC_ERROR
        result = self.set(payload)
        _LOGGER.debug("SettingsStore.load path=%s result=%s", settings_path, result.name)
        return result

    def save(self, path: str | os.PathLike) -> MemoError:
        settings_path = Path(path)
        try:
            settings_path.parent.mkdir(parents=True, exist_ok=True)
            settings_path.write_text(json.dumps(self.get(), indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            error = classify_os_error(exc)
            _LOGGER.exception("SettingsStore.save failed path=%s", settings_path)
            return error
        _LOGGER.debug("SettingsStore.save wrote path=%s", settings_path)
        return MemoError.OK
