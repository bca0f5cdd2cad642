from __future__ import annotations

import os
from dataclasses import dataclass

from ..app_settings.store import SettingsStore, is_positive_number, primitive_kind
from ..logging_utils import get_logger, page_operation
from .errors import MemoError
from .slot import LoadResult, SaveResult, Slot, same_path

_LOGGER = get_logger(__name__)

MAX_PAGES = 3


@dataclass
class SlotResult:
    index: int
    error: MemoError
    locked: bool | None = None


class SlotRegistry:
    """Fixed set of memo slots sharing one settings store.

    Slots are addressed by index. Calls naming an index outside the fixed
    range answer with ``INVALID_PARAMETER`` instead of raising.
    """

    def __init__(self, slot_count: int = MAX_PAGES, settings: SettingsStore | None = None) -> None:
        if slot_count < 1:
            raise ValueError("slot_count must be at least 1")
        self.settings_store = settings or SettingsStore()
        current = self.settings_store.settings
        self._slots: tuple[Slot, ...] = tuple(
            Slot(
                current.save_dir,
                current.encoding,
                current.auto_encoding,
                int(current.file_size_warning_bytes),
            )
            for _ in range(slot_count)
        )
        self._focused_index = 0

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def slot_count(self) -> int:
        return len(self._slots)

    @property
    def focused_index(self) -> int:
        return self._focused_index

    def slot(self, index: int) -> Slot:
        return self._slots[index]

    def _valid_index(self, index: object) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self._slots)

    def set_focused_index(self, index: int) -> MemoError:
        if not self._valid_index(index):
            return MemoError.INVALID_PARAMETER
        self._focused_index = index
        return MemoError.OK

    # ---------- Files ----------
    def save(self, index: int, filename: str | None, text: str, *, overwrite: bool = False) -> SaveResult:
        if not self._valid_index(index):
            return SaveResult(save_count=0, is_external_file=False, error=MemoError.INVALID_PARAMETER, index=index)
        with page_operation(index, "save"):
            result = self._slots[index].save(filename, text, overwrite=overwrite)
        result.index = index
        return result

    def load(
        self,
        index: int,
        path: str,
        *,
        ignore_size_check: bool = False,
        overwrite: bool = False,
        encoding: str | None = None,
    ) -> LoadResult:
        if not self._valid_index(index):
            return LoadResult(text=None, filename=None, error=MemoError.INVALID_PARAMETER, index=index)
        with page_operation(index, "load"):
            return self._load_into(index, path, ignore_size_check, overwrite, encoding)

    def _load_into(
        self,
        index: int,
        path: str,
        ignore_size_check: bool,
        overwrite: bool,
        encoding: str | None,
    ) -> LoadResult:
        owner = self.find_open_index(path)
        if owner is not None and owner != index:
            _LOGGER.warning('Load refused: "%s" already open in page %d', path, owner + 1)
            return LoadResult(text=None, filename=None, error=MemoError.ALREADY_OPEN, index=index)
        result = self._slots[index].load(
            path,
            ignore_size_check=ignore_size_check,
            overwrite=overwrite,
            encoding=encoding,
        )
        result.index = index
        return result

    def reload_with_encoding(self, index: int, encoding: str) -> LoadResult:
        """Re-read an externally loaded page's file with a chosen encoding."""
        if not self._valid_index(index) or not self._slots[index].is_external_file:
            return LoadResult(text=None, filename=None, error=MemoError.INVALID_PARAMETER, index=index)
        with page_operation(index, "reload"):
            return self._load_into(index, self._slots[index].save_path, True, True, encoding)

    def find_open_index(self, path: str) -> int | None:
        for index, slot in enumerate(self._slots):
            if same_path(slot.save_path, path):
                return index
        return None

    def get_file_info(self, index: int) -> dict | None:
        if not self._valid_index(index):
            return None
        return self._slots[index].file_info()

    # ---------- Page state ----------
    def mark_unsaved(self, index: int) -> SlotResult:
        if not self._valid_index(index):
            return SlotResult(index=index, error=MemoError.INVALID_PARAMETER)
        self._slots[index].mark_unsaved()
        return SlotResult(index=index, error=MemoError.OK)

    def toggle_lock(self, index: int) -> SlotResult:
        if not self._valid_index(index):
            return SlotResult(index=index, error=MemoError.INVALID_PARAMETER)
        with page_operation(index, "lock"):
            locked = self._slots[index].toggle_lock()
            _LOGGER.debug("toggle_lock locked=%s", locked)
        return SlotResult(index=index, error=MemoError.OK, locked=locked)

    def clear(self, index: int) -> SlotResult:
        if not self._valid_index(index):
            return SlotResult(index=index, error=MemoError.INVALID_PARAMETER)
        slot = self._slots[index]
        with page_operation(index, "clear"):
            error = slot.clear()
            _LOGGER.debug("clear result=%s", error.name)
        return SlotResult(index=index, error=error, locked=slot.locked)

    def get_lock_states(self) -> list[bool]:
        return [slot.locked for slot in self._slots]

    def get_unsaved_indices(self) -> list[int]:
        return [index for index, slot in enumerate(self._slots) if slot.unsaved]

    # ---------- Settings ----------
    def get_global_settings(self) -> dict:
        return self.settings_store.get()

    def apply_global_settings(self, payload: object) -> MemoError:
        result = self.settings_store.set(payload)
        if result.ok:
            self._fan_out_settings()
        return result

    def _fan_out_settings(self) -> None:
        current = self.settings_store.settings
        for slot in self._slots:
            slot.set_default_directory(current.save_dir)
            slot.set_default_encoding(current.encoding)
            slot.set_auto_encoding(current.auto_encoding)
            slot.set_file_size_warning_bytes(int(current.file_size_warning_bytes))
        _LOGGER.debug(
            "settings fanned out save_dir=%s encoding=%s auto_encoding=%s",
            current.save_dir,
            current.encoding,
            current.auto_encoding,
        )

    def get_local_settings(self) -> dict:
        slot = self._slots[self._focused_index]
        return {"index": self._focused_index, "encoding": slot.encoding}

    def apply_local_settings(self, payload: object) -> MemoError:
        if not isinstance(payload, dict) or "encoding" not in payload:
            return MemoError.INVALID_PARAMETER
        with page_operation(self._focused_index, "encoding"):
            result = self._slots[self._focused_index].set_encoding(payload["encoding"])
            _LOGGER.info("Page encoding %s: %s", payload["encoding"], result.name)
        return result

    def get_ui_settings(self) -> dict:
        current = self.settings_store.settings
        return {
            "font_size": current.font_size,
            "font_family": current.font_family,
            "always_on_top": current.always_on_top,
        }

    def set_font_size(self, font_size: int | float) -> MemoError:
        if primitive_kind(font_size) != "number" or not is_positive_number(font_size):
            return MemoError.INVALID_FONT_SIZE
        return self.settings_store.update(font_size=font_size)

    def toggle_always_on_top(self) -> bool:
        flag = not self.settings_store.settings.always_on_top
        self.settings_store.update(always_on_top=flag)
        return self.settings_store.settings.always_on_top

    def load_settings_file(self, path: str | os.PathLike) -> MemoError:
        result = self.settings_store.load(path)
        if result.ok:
            self._fan_out_settings()
        _LOGGER.info('Settings load "%s": %s', path, result.name)
        return result

    def save_settings_file(self, path: str | os.PathLike) -> MemoError:
        result = self.settings_store.save(path)
        _LOGGER.info('Settings save "%s": %s', path, result.name)
        return result
