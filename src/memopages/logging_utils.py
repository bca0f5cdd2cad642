"""App logging and the in-memory log shown by the Logs dialog.

Records emitted while a page operation runs carry the page index and the
operation name (see ``page_operation``), so the log view can narrow the
buffer to one page or one level.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator

LOG_LEVEL_OPTIONS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_LOG_LEVEL = "INFO"
LOG_BUFFER_MAX = 2000

_page_context: ContextVar[tuple[int | None, str | None]] = ContextVar("memopages_page_context", default=(None, None))


@dataclass(frozen=True)
class LogEntry:
    created: float
    levelno: int
    logger: str
    page: int | None
    operation: str | None
    text: str


@contextmanager
def page_operation(page: int | None, operation: str | None) -> Iterator[None]:
    """Tag every record logged inside the block with ``page`` and ``operation``."""
    token = _page_context.set((page, operation))
    try:
        yield
    finally:
        _page_context.reset(token)


class PageContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        page, operation = _page_context.get()
        if not hasattr(record, "page"):
            record.page = page
        if not hasattr(record, "operation"):
            record.operation = operation
        return True


class MemoLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        time_text = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        parts = [f"[{record.levelname.capitalize()}]", f"[{time_text}]"]
        page = getattr(record, "page", None)
        if page is not None:
            parts.append(f"[page {page + 1}]")
        operation = getattr(record, "operation", None)
        if operation:
            parts.append(f"[{operation}]")
        if record.name:
            parts.append(f"[{record.name}]")
        text = f"{' '.join(parts)} {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


class LogBuffer(logging.Handler):
    """Keeps the most recent formatted records for the Logs dialog."""

    def __init__(self, capacity: int = LOG_BUFFER_MAX) -> None:
        super().__init__()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = self.format(record)
        except (TypeError, ValueError):
            self.handleError(record)
            return
        self._entries.append(
            LogEntry(
                created=record.created,
                levelno=record.levelno,
                logger=record.name,
                page=getattr(record, "page", None),
                operation=getattr(record, "operation", None),
                text=text,
            )
        )

    def entries(self, *, page: int | None = None, min_level: int = logging.NOTSET) -> list[LogEntry]:
        self.acquire()
        try:
            snapshot = list(self._entries)
        finally:
            self.release()
        return [
            entry
            for entry in snapshot
            if entry.levelno >= min_level and (page is None or entry.page == page)
        ]

    def clear(self) -> None:
        self.acquire()
        try:
            self._entries.clear()
        finally:
            self.release()


_buffer = LogBuffer()


def get_log_entries(*, page: int | None = None, min_level: int = logging.NOTSET) -> list[LogEntry]:
    return _buffer.entries(page=page, min_level=min_level)


def get_console_log_lines(*, page: int | None = None, min_level: int = logging.NOTSET) -> list[str]:
    return [entry.text for entry in _buffer.entries(page=page, min_level=min_level)]


def clear_console_log_lines() -> None:
    _buffer.clear()


def level_number(value: object, default: str = DEFAULT_LOG_LEVEL) -> int:
    name = str(value or "").strip().upper()
    if name not in LOG_LEVEL_OPTIONS:
        name = default
    return logging.getLevelName(name)


def _install(root_logger: logging.Logger, handler: logging.Handler) -> None:
    if handler in root_logger.handlers:
        return
    handler.setFormatter(MemoLogFormatter())
    handler.addFilter(PageContextFilter())
    root_logger.addHandler(handler)


def configure_app_logging(level: object = DEFAULT_LOG_LEVEL, *, console: bool = True) -> int:
    """Route records to the log buffer and, unless disabled, to stderr. Safe to call again."""
    root_logger = logging.getLogger()
    _install(root_logger, _buffer)
    if console and not any(getattr(h, "_memopages_console", False) for h in root_logger.handlers):
        stream = logging.StreamHandler(sys.__stderr__)
        stream._memopages_console = True  # type: ignore[attr-defined]
        _install(root_logger, stream)
    number = level_number(level)
    root_logger.setLevel(number)
    logging.captureWarnings(True)
    return number


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
