"""Processing guard: the paths autoshrink is about to write back itself.

Writing a compressed image back to its own path produces a fresh creation
event for that path. The guard remembers which paths are ours so the filter
can recognise that echo and drop it instead of compressing the file again.

The guard is keyed by path. A claim for `b.png` does not disturb an
outstanding claim for `a.png`, so several files dropped at once each get
their own echo suppressed. Two events for the *same* path while a job for
it is in flight still collapse into one claim: the second event is taken
for the echo. Hosts deliver events one at a time (see `EventDispatcher`),
so the guard itself is not locked.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class ProcessingGuard:
    def __init__(self):
        self._held: List[str] = []

    @property
    def current(self) -> str:
        """Most recently claimed path still held, or "" when idle."""
        return self._held[-1] if self._held else ""

    @property
    def held(self) -> List[str]:
        return list(self._held)

    def is_held(self, path: str) -> bool:
        return path in self._held

    def claim(self, path: str) -> None:
        if path not in self._held:
            self._held.append(path)
        logger.debug("Guard claimed: %s", path)

    def release(self, path: str) -> None:
        """Drop the claim on `path`; releasing an unheld path is a no-op."""
        if path in self._held:
            self._held.remove(path)
            logger.debug("Guard released: %s", path)

    def consume_echo(self, path: str) -> bool:
        """Return True and release `path` if it is held.

        Only the first echo is absorbed: once released, a later event for
        the same path is treated as a new file.
        """
        if path not in self._held:
            return False
        self._held.remove(path)
        logger.debug("Guard consumed echo: %s", path)
        return True

    def clear(self) -> None:
        self._held.clear()

    def __bool__(self) -> bool:
        return bool(self._held)

    def __repr__(self) -> str:
        return f"<ProcessingGuard: {self._held}>"
