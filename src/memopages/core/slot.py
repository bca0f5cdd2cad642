from __future__ import annotations

import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from ..logging_utils import get_logger
from . import encoding as enc
from .errors import MemoError, classify_os_error

_LOGGER = get_logger(__name__)

INTERNAL_EXTENSION = ".txt"
DEFAULT_FILE_SIZE_WARNING_BYTES = 1 * 1024 * 1024
_RESERVED_FILENAME = re.compile(r'^.*[\\/:*?"<>|].*$', re.DOTALL)


@dataclass
class SaveResult:
    save_count: int
    is_external_file: bool
    error: MemoError
    index: int | None = None


@dataclass
class LoadResult:
    text: str | None
    filename: str | None
    error: MemoError
    index: int | None = None


def normalize_path(path) -> str:
    return os.path.abspath(os.fspath(path))


def same_path(left, right) -> bool:
    if not left or not right:
        return False
    return os.path.normcase(normalize_path(left)) == os.path.normcase(normalize_path(right))


def check_filename(filename: str) -> MemoError:
    if _RESERVED_FILENAME.match(filename):
        return MemoError.INVALID_FILENAME
    return MemoError.OK


class Slot:
    """One memo page and the file it is bound to.

    A slot starts fresh, becomes internally saved on its first save or
    externally loaded on a load, and returns to fresh on ``clear()``.
    Every refused operation leaves the slot exactly as it was.
    """

    def __init__(
        self,
        default_directory: str,
        default_encoding: str = "UTF8",
        auto_encoding: bool = True,
        file_size_warning_bytes: int = DEFAULT_FILE_SIZE_WARNING_BYTES,
    ) -> None:
        if not enc.is_persistable_encoding(default_encoding):
            raise ValueError(f"invalid default encoding: {default_encoding!r}")
        self.default_directory = str(default_directory)
        self.default_encoding = default_encoding
        self.auto_encoding = bool(auto_encoding)
        self.file_size_warning_bytes = int(file_size_warning_bytes)

        self.directory = self.default_directory
        self.encoding = self.default_encoding
        self.is_external_file = False
        self.filename: str | None = None
        self.save_count = 0
        self.save_path: str | None = None
        self.unsaved = False
        self.locked = False

    @property
    def is_pristine(self) -> bool:
        return not self.unsaved and self.save_path is None

    def mark_unsaved(self) -> None:
        self.unsaved = True

    def toggle_lock(self) -> bool:
        self.locked = not self.locked
        return self.locked

    def file_info(self) -> dict:
        return {
            "encoding": self.encoding,
            "is_external_file": self.is_external_file,
            "save_path": self.save_path,
            "save_count": self.save_count,
            "filename": self.filename,
        }

    # ---------- Load ----------
    def load(
        self,
        path: str,
        *,
        ignore_size_check: bool = False,
        overwrite: bool = False,
        encoding: str | None = None,
    ) -> LoadResult:
        _LOGGER.debug(
            "Slot.load start path=%s ignore_size_check=%s overwrite=%s encoding=%s",
            path,
            ignore_size_check,
            overwrite,
            encoding,
        )
        if not overwrite and not self.is_pristine:
            return self._refuse_load(path, MemoError.CONTENT_PENDING)
        if not os.path.exists(path):
            return self._refuse_load(path, MemoError.NOT_FOUND)
        try:
            size = os.path.getsize(path)
            if not ignore_size_check and size > self.file_size_warning_bytes:
                return self._refuse_load(path, MemoError.FILE_TOO_LARGE)
            with open(path, "rb") as handle:
                raw = handle.read()
        except OSError as exc:
            error = classify_os_error(exc)
            if error is MemoError.GENERIC_ERROR:
                _LOGGER.exception("Slot.load read failed path=%s", path)
            return self._refuse_load(path, error)
        if encoding is not None and not enc.is_persistable_encoding(encoding):
            return self._refuse_load(path, MemoError.INVALID_PARAMETER)

        self._reset()
        self._set_external_file(path)
        source = self._resolve_source_encoding(raw, encoding)
        text = enc.convert(raw, to=enc.UNICODE, from_=source)
        self.encoding = source
        _LOGGER.info('Loaded "%s" as %s (%d bytes)', self.save_path, source, len(raw))
        return LoadResult(text=text, filename=self.filename, error=MemoError.OK)

    def _refuse_load(self, path: str, error: MemoError) -> LoadResult:
        _LOGGER.warning('Load refused: "%s" - %s', path, error.name)
        return LoadResult(text=None, filename=None, error=error)

    def _resolve_source_encoding(self, raw: bytes, forced: str | None) -> str:
        if forced is not None:
            return forced
        if self.auto_encoding:
            return enc.detect_charset(raw, self.encoding).table_key
        return self.encoding

    def _set_external_file(self, path: str) -> None:
        full_path = normalize_path(path)
        self.is_external_file = True
        self.directory = os.path.dirname(full_path)
        self.filename = os.path.basename(full_path)
        self.save_path = full_path

    # ---------- Save ----------
    def add_extension(self, filename: str) -> str:
        if self.is_external_file:
            return filename
        return filename + INTERNAL_EXTENSION

    def save(self, filename: str | None, text: str, *, overwrite: bool = False) -> SaveResult:
        _LOGGER.debug(
            "Slot.save start filename=%s directory=%s overwrite=%s external=%s",
            filename,
            self.directory,
            overwrite,
            self.is_external_file,
        )
        if self.locked:
            error = MemoError.LOCKED
        elif not filename:
            error = MemoError.NO_FILENAME
        elif not os.path.isdir(self.directory):
            error = MemoError.DIRECTORY_NOT_FOUND
        elif not check_filename(filename).ok:
            error = MemoError.INVALID_FILENAME
        else:
            error = self._write(filename, text, overwrite)
        if not error.ok:
            _LOGGER.warning('Save refused: "%s" - %s', filename, error.name)
        return SaveResult(save_count=self.save_count, is_external_file=self.is_external_file, error=error)

    def _write(self, filename: str, text: str, overwrite: bool) -> MemoError:
        target = normalize_path(os.path.join(self.directory, self.add_extension(filename)))
        same_target = same_path(target, self.save_path)
        mode = "wb" if (self.is_external_file or overwrite or same_target) else "xb"
        try:
            with self._rollback_on_failure("encoding"):
                if not self.is_external_file and not same_target:
                    self.encoding = self.default_encoding
                descriptor = enc.get_descriptor(self.encoding)
                payload = enc.convert(text, to=self.encoding, from_=enc.UNICODE, bom=descriptor.bom_policy)
                with open(target, mode) as handle:
                    handle.write(payload)
        except OSError as exc:
            error = classify_os_error(exc)
            if error is MemoError.GENERIC_ERROR:
                _LOGGER.exception("Slot.save write failed path=%s mode=%s", target, mode)
            return error
        if not same_target:
            self.save_count = 0
            self.filename = os.path.basename(target)
        self.save_path = target
        self.save_count += 1
        self.unsaved = False
        _LOGGER.info('Saved "%s" as %s (save #%d)', target, self.encoding, self.save_count)
        return MemoError.OK

    @contextmanager
    def _rollback_on_failure(self, *fields: str) -> Iterator[None]:
        snapshot = {name: getattr(self, name) for name in fields}
        try:
            yield
        except BaseException:
            for name, value in snapshot.items():
                setattr(self, name, value)
            raise

    # ---------- Reset / defaults ----------
    def clear(self) -> MemoError:
        if self.locked:
            return MemoError.LOCKED
        self._reset()
        return MemoError.OK

    def _reset(self) -> None:
        self.directory = self.default_directory
        self.encoding = self.default_encoding
        self.is_external_file = False
        self.filename = None
        self.save_count = 0
        self.save_path = None
        self.unsaved = False

    def set_default_directory(self, path: str) -> None:
        self.default_directory = str(path)
        # Internally saved slots follow too; their next save lands in the new directory.
        if not self.is_external_file:
            self.directory = self.default_directory

    def set_default_encoding(self, name: str) -> MemoError:
        if not enc.is_persistable_encoding(name):
            return MemoError.INVALID_PARAMETER
        self.default_encoding = name
        if not self.is_external_file and self.save_count == 0:
            self.encoding = name
        return MemoError.OK

    def set_encoding(self, name: str) -> MemoError:
        if not enc.is_persistable_encoding(name):
            return MemoError.INVALID_PARAMETER
        self.encoding = name
        return MemoError.OK

    def set_auto_encoding(self, enabled: bool) -> None:
        self.auto_encoding = bool(enabled)

    def set_file_size_warning_bytes(self, limit: int) -> None:
        self.file_size_warning_bytes = int(limit)
