"""
Eligibility filter: decides whether a newly created vault file is a
compression candidate.

Checks run in a fixed order and the first one that skips wins:

1. extension not png/jpg/jpeg
2. the file is the echo of our own write-back
3. (claim the guard for this file)
4. a user ignore pattern matches the path
5. the content is empty or unreadable
6. the content is not larger than the size threshold

Every skip after step 3 releases the guard again.
"""

import logging
import re
from enum import Enum
from typing import Iterable, NamedTuple, Optional

from . import config
from .guard import ProcessingGuard
from .plugin_api import Notifier

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    NOT_IMAGE = "not an image"
    ECHO = "echo of our own write"
    IGNORED = "ignored by user pattern"
    EMPTY = "empty file"
    SMALL_ENOUGH = "already small enough"


class Decision(NamedTuple):
    eligible: bool
    reason: Optional[SkipReason] = None
    pattern: Optional[str] = None  # the ignore pattern that matched, if any

    @classmethod
    def proceed(cls) -> "Decision":
        return cls(True)

    @classmethod
    def skip(cls, reason: SkipReason, pattern: Optional[str] = None) -> "Decision":
        return cls(False, reason, pattern)


def is_image_extension(extension: str) -> bool:
    return (extension or "").lower() in config.IMAGE_EXTENSIONS


def match_ignored(
    path: str, patterns: Iterable[str], notifier: Optional[Notifier] = None
) -> Optional[str]:
    """
    Return the first pattern that matches `path`, in configured order.

    A pattern that fails to compile is reported and skipped; the remaining
    patterns are still tried.
    """
    for pattern in patterns:
        try:
            regex = re.compile(pattern)
        except (re.error, OverflowError, RecursionError) as e:
            logger.warning(f"Invalid ignore pattern {pattern!r}: {e}")
            if notifier:
                notifier.notice(f"Invalid ignore pattern {pattern!r}: {e}", "warning")
            continue
        if regex.search(path):
            return pattern
    return None


def should_process(
    path: str,
    extension: str,
    guard: ProcessingGuard,
    ignored_patterns: Iterable[str],
    notifier: Optional[Notifier] = None,
) -> Decision:
    """Run the path-only checks: extension, echo guard and ignore patterns."""
    if not is_image_extension(extension):
        logger.debug(f"Skipping {path}: {SkipReason.NOT_IMAGE.value}")
        return Decision.skip(SkipReason.NOT_IMAGE)

    if guard.consume_echo(path):
        logger.debug(f"Skipping {path}: {SkipReason.ECHO.value}")
        return Decision.skip(SkipReason.ECHO)

    guard.claim(path)

    pattern = match_ignored(path, ignored_patterns, notifier)
    if pattern is not None:
        guard.release(path)
        logger.info(f"Skipping {path}: {SkipReason.IGNORED.value} {pattern!r}")
        return Decision.skip(SkipReason.IGNORED, pattern)

    return Decision.proceed()


def check_size(
    path: str,
    data: Optional[bytes],
    convert_size: int,
    guard: ProcessingGuard,
    notifier: Optional[Notifier] = None,
) -> Decision:
    """Run the content checks on a file whose guard is already claimed."""
    if not data:
        guard.release(path)
        logger.warning(f"Skipping {path}: {SkipReason.EMPTY.value}")
        if notifier:
            notifier.notice(f"{path}: file is empty or unreadable", "warning")
        return Decision.skip(SkipReason.EMPTY)

    if len(data) <= convert_size:
        guard.release(path)
        logger.debug(
            f"Skipping {path}: {SkipReason.SMALL_ENOUGH.value} "
            f"({len(data)} <= {convert_size} bytes)"
        )
        return Decision.skip(SkipReason.SMALL_ENOUGH)

    return Decision.proceed()
