"""
Single-threaded event dispatcher.

watchdog delivers file events on its observer thread and the codec finishes
on a worker thread. Both hand their work to an EventDispatcher, which runs
it one callable at a time on its own thread, so the plugin and its guard
only ever see one event at a time.
"""

import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class EventDispatcher:
    def __init__(self, name: str = "autoshrink-events"):
        self.name = name
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue `fn(*args)` to run on the dispatcher thread."""
        if self.stop_event.is_set():
            logger.debug(f"Dispatcher stopped; dropping {getattr(fn, '__name__', fn)}")
            return
        self._queue.put((fn, args))

    def _run_one(self, item) -> None:
        fn, args = item
        try:
            fn(*args)
        except Exception:
            logger.exception(f"Unhandled error in {getattr(fn, '__name__', fn)}")

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._run_one(item)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.debug("Event dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop accepting work, finish what is queued and join the thread."""
        self.stop_event.set()
        if self._thread and self._thread.is_alive():
            self._queue.put(_STOP)
            self._thread.join(timeout=timeout)
        logger.debug("Event dispatcher stopped")

    def run_pending(self) -> int:
        """Run queued callables on the calling thread; returns how many ran.

        Only for use when the dispatcher thread is not started.
        """
        ran = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return ran
            if item is _STOP:
                continue
            self._run_one(item)
            ran += 1

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
