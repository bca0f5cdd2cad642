"""User-facing follow-up for registry results.

The registry never waits on the user. When a result needs a decision the
flow asks the prompter and, on a yes, issues the same request again with
the matching flag set.
"""

from __future__ import annotations

from typing import Protocol

from ..core.errors import MemoError
from ..core.registry import SlotRegistry
from ..core.slot import LoadResult, SaveResult
from ..logging_utils import get_logger

_LOGGER = get_logger(__name__)

DIALOG_TITLE = "Memo Pages"

SAVE_MESSAGES: dict[MemoError, tuple[str, str]] = {
    MemoError.NO_FILENAME: ("warning", "Enter a file name."),
    MemoError.INVALID_FILENAME: ("warning", 'The file name contains a reserved character (\\ / : * ? " < > |).'),
    MemoError.NOT_FOUND: ("warning", "The file name contains an invalid character or sequence."),
    MemoError.DIRECTORY_NOT_FOUND: ("warning", "The save folder does not exist. Choose another one in Settings."),
    MemoError.PATH_TOO_LONG: ("warning", "The file path is too long."),
    MemoError.BUSY: ("warning", "The file is open elsewhere. Close it and try again."),
    MemoError.LOCKED: ("info", "This page is locked."),
}

LOAD_MESSAGES: dict[MemoError, tuple[str, str]] = {
    MemoError.ALREADY_OPEN: ("info", "This file is already open on another page."),
    MemoError.NOT_FOUND: ("warning", "The file does not exist. It may have been moved, renamed or deleted."),
    MemoError.BUSY: ("warning", "The file is in use. Close it and try again."),
    MemoError.PATH_TOO_LONG: ("warning", "The file path is too long."),
    MemoError.INVALID_PARAMETER: ("warning", "The selected encoding is not available for this page."),
}

SETTINGS_MESSAGES: dict[MemoError, tuple[str, str]] = {
    MemoError.DIRECTORY_NOT_FOUND: ("warning", "The save folder does not exist."),
    MemoError.INVALID_FONT_SIZE: ("warning", "The font size is invalid. Enter a value of 1 or more."),
    MemoError.INVALID_PARAMETER: ("warning", "One of the values is out of range."),
}

CONFIRM_OVERWRITE = "The file already exists. Overwrite it?"
CONFIRM_DISCARD = "This page still holds a memo. Open the file anyway?"
CONFIRM_LARGE_FILE = "The file is very large and the app may become unstable.\nOpen it anyway?"


class Prompter(Protocol):
    def confirm(self, title: str, message: str) -> bool: ...

    def inform(self, title: str, message: str, level: str = "info") -> None: ...


class ConfirmationFlow:
    def __init__(self, registry: SlotRegistry, prompter: Prompter) -> None:
        self.registry = registry
        self.prompter = prompter

    def _report(self, messages: dict[MemoError, tuple[str, str]], error: MemoError, fallback: str) -> None:
        level, message = messages.get(error, ("error", f"{fallback} ({error.name})"))
        self.prompter.inform(DIALOG_TITLE, message, level)

    def save_page(self, index: int, filename: str | None, text: str) -> SaveResult:
        result = self.registry.save(index, filename, text)
        if result.error is MemoError.FILE_EXISTS:
            if self.prompter.confirm(DIALOG_TITLE, CONFIRM_OVERWRITE):
                result = self.registry.save(index, filename, text, overwrite=True)
            else:
                _LOGGER.debug("save_page overwrite declined index=%d filename=%s", index, filename)
                return result
        if not result.error.ok:
            self._report(SAVE_MESSAGES, result.error, "An unexpected error occurred while saving.")
        return result

    def load_page(self, index: int, path: str, *, ignore_size_check: bool = False, overwrite: bool = False) -> LoadResult:
        while True:
            result = self.registry.load(index, path, ignore_size_check=ignore_size_check, overwrite=overwrite)
            if result.error is MemoError.CONTENT_PENDING and not overwrite:
                if not self.prompter.confirm(DIALOG_TITLE, CONFIRM_DISCARD):
                    return result
                overwrite = True
                continue
            if result.error is MemoError.FILE_TOO_LARGE and not ignore_size_check:
                if not self.prompter.confirm(DIALOG_TITLE, CONFIRM_LARGE_FILE):
                    return result
                ignore_size_check = True
                continue
            break
        if not result.error.ok:
            self._report(LOAD_MESSAGES, result.error, "An unexpected error occurred while reading.")
        return result

    def reload_page_encoding(self, index: int, encoding: str) -> LoadResult:
        info = self.registry.get_file_info(index)
        if not info or not info["is_external_file"]:
            self.prompter.inform(DIALOG_TITLE, "Only files opened from disk can be re-read.", "info")
            return LoadResult(text=None, filename=None, error=MemoError.INVALID_PARAMETER, index=index)
        result = self.registry.reload_with_encoding(index, encoding)
        if not result.error.ok:
            self._report(LOAD_MESSAGES, result.error, "An unexpected error occurred while reading.")
        return result

    def apply_global_settings(self, payload: dict) -> MemoError:
        result = self.registry.apply_global_settings(payload)
        if not result.ok:
            self._report(
                SETTINGS_MESSAGES,
                result,
                "The settings could not be applied. The data layout may not match",
            )
        return result

    def apply_local_settings(self, payload: dict) -> MemoError:
        result = self.registry.apply_local_settings(payload)
        if not result.ok:
            self._report(SETTINGS_MESSAGES, result, "The page settings could not be applied")
        return result
