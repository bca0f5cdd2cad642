from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import QApplication

from .app_settings import get_crash_logs_file_path, get_settings_file_path
from .core.errors import MemoError
from .core.registry import SlotRegistry
from .logging_utils import LOG_LEVEL_OPTIONS, configure_app_logging, get_logger
from .ui.main_window import MemoWindow

LOGGER = get_logger(__name__)


def save_crash_traceback(traceback_text: str, path: Optional[Path] = None) -> None:
    target = path or get_crash_logs_file_path()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a", encoding="utf-8") as handle:
            handle.write(traceback_text.rstrip("\n"))
            handle.write("\n\n")
    except OSError:
        LOGGER.exception("Could not write crash log %s", target)


def main(
    existing_app: Optional[QApplication] = None,
    settings_path: Optional[Path] = None,
    log_level: str = "INFO",
) -> MemoWindow:
    # Use existing QApplication if passed (from run()), otherwise create one
    owns_app = existing_app is None
    app = existing_app or QApplication(sys.argv)
    configure_app_logging(log_level)
    app.setApplicationName("Memo Pages")
    LOGGER.info("App main() starting (owns_app=%s)", owns_app)

    registry = SlotRegistry()
    path = Path(settings_path) if settings_path is not None else get_settings_file_path()
    result = registry.load_settings_file(path)
    if result is MemoError.NOT_FOUND:
        LOGGER.info("No settings file at %s; using defaults", path)
    elif not result.ok:
        LOGGER.warning("Settings file %s rejected (%s); using defaults", path, result.name)

    window = MemoWindow(registry, settings_path=path)
    LOGGER.info("Main window instance created")

    def _global_exception_hook(exc_type, exc_value, exc_tb) -> None:
        error_text = "".join(traceback.format_exception(exc_type, exc_value, exc_tb)).strip()
        LOGGER.error("Unhandled exception routed to global hook", exc_info=(exc_type, exc_value, exc_tb))
        save_crash_traceback(error_text)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _global_exception_hook

    if owns_app:
        window.show()
        LOGGER.info("Window shown by app.main() (standalone mode)")
    return window


def run(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="memopages", add_help=True)
    parser.add_argument("--settings", type=Path, default=None, help="Path of the settings JSON file.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVEL_OPTIONS,
        type=str.upper,
        help="Console log level.",
    )
    parsed_args, qt_args = parser.parse_known_args(sys.argv[1:] if argv is None else argv)
    configure_app_logging(parsed_args.log_level)
    LOGGER.debug("Parsed startup args: parsed=%s qt=%s", parsed_args, qt_args)

    app = QApplication([sys.argv[0], *qt_args])
    app.setQuitOnLastWindowClosed(True)
    window = main(existing_app=app, settings_path=parsed_args.settings, log_level=parsed_args.log_level)
    window.show()
    exit_code = app.exec()
    LOGGER.info("Qt event loop exited with code %s", exit_code)
    return exit_code
