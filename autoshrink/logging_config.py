"""
Logging setup for the autoshrink command.

Two kinds of records reach the console:

- diagnostics from the `autoshrink.*` modules (and watchdog), on stderr,
  filtered by the chosen level
- user notices from `LoggingNotifier` ("Compressed ...", "Quality: not a
  number"), on stdout, so they stay visible even when diagnostics are quiet

Both also go to the optional rotating log file, whatever the console level.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from . import config

DIAGNOSTIC_FORMAT = "[autoshrink] %(levelname)s %(name)s: %(message)s"
NOTICE_FORMAT = "[autoshrink] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# console level for diagnostics, console level for notices
LEVELS = {
    "debug": (logging.DEBUG, logging.DEBUG),
    "info": (logging.INFO, logging.INFO),
    "warning": (logging.WARNING, logging.INFO),
    "quiet": (logging.ERROR, logging.WARNING),
}

_installed: List[logging.Handler] = []


def _console_handler(stream, level: int, fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        str(path), maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _reset() -> None:
    root = logging.getLogger()
    notices = logging.getLogger(config.NOTICE_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _installed:
        notices.removeHandler(handler)
        if handler not in root.handlers:
            handler.close()
    _installed.clear()


def configure_logging(log_file: Optional[str], level: str = "info") -> None:
    """
    (Re)configure console and file logging.

    Args:
        log_file: Path of the rotating log file, or None for console only
        level: One of 'debug', 'info', 'warning', 'quiet'; anything else
            behaves like 'info'
    """
    diag_level, notice_level = LEVELS.get((level or "").lower(), LEVELS["info"])
    _reset()

    root = logging.getLogger()
    root.addHandler(_console_handler(sys.stderr, diag_level, DIAGNOSTIC_FORMAT))
    root.setLevel(logging.DEBUG if diag_level == logging.DEBUG else logging.INFO)

    # Notices bypass the root handlers so they are printed once, in their own format
    notices = logging.getLogger(config.NOTICE_LOGGER)
    notices.propagate = False
    notices.setLevel(logging.DEBUG)
    notice_console = _console_handler(sys.stdout, notice_level, NOTICE_FORMAT)
    notices.addHandler(notice_console)
    _installed.append(notice_console)

    if log_file:
        file_handler = _file_handler(log_file)
        root.addHandler(file_handler)
        notices.addHandler(file_handler)
        _installed.append(file_handler)

    logging.getLogger("watchdog").setLevel(logging.INFO)
