"""Memo slot core: encodings, slots and the slot registry."""

from .errors import MemoError, UnsupportedOperation, classify_os_error

__all__ = [
    "MemoError",
    "UnsupportedOperation",
    "classify_os_error",
]
