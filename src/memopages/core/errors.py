from __future__ import annotations

import errno
from enum import IntEnum


class UnsupportedOperation(ValueError):
    pass


class MemoError(IntEnum):
    """Result codes shared by every slot, registry and settings operation."""

    OK = 0

    # file
    FILE_EXISTS = 1
    NOT_FOUND = 2
    DIRECTORY_NOT_FOUND = 3
    PATH_TOO_LONG = 4
    INVALID_FILENAME = 5
    COLON_IN_FILENAME = 6
    NO_FILENAME = 7
    SAME_FILENAME = 8
    FILE_TOO_LARGE = 9
    ALREADY_OPEN = 10
    CONTENT_PENDING = 11
    BUSY = 12
    LOCKED = 13

    # settings
    INVALID_FONT_SIZE = 30
    INVALID_PARAMETER = 31

    GENERIC_ERROR = -1

    @property
    def ok(self) -> bool:
        return self is MemoError.OK


# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_WINDOWS_BUSY_CODES = {32, 33}

_ERRNO_MAP = {
    errno.ENOENT: MemoError.NOT_FOUND,
    errno.EEXIST: MemoError.FILE_EXISTS,
    errno.EBUSY: MemoError.BUSY,
    errno.ENAMETOOLONG: MemoError.PATH_TOO_LONG,
}


def classify_os_error(exc: OSError) -> MemoError:
    if getattr(exc, "winerror", None) in _WINDOWS_BUSY_CODES:
        return MemoError.BUSY
    return _ERRNO_MAP.get(exc.errno, MemoError.GENERIC_ERROR)
