"""
Vault watcher: turns watchdog file-system events into plugin creation events.

A file counts as created when watchdog reports it created (once its size
has settled) or when something is renamed onto its path. The second case
covers editors that save atomically and autoshrink's own write-back.
"""

import logging
import signal
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from . import config
from .codec import PillowCodec
from .dispatcher import EventDispatcher
from .eligibility import is_image_extension
from .plugin_api import FileHandle
from .vault import FolderVault

logger = logging.getLogger(__name__)


def wait_for_stable_file(
    path: Path,
    stable_seconds: float = config.DEFAULT_STABLE_SECONDS,
    timeout: float = config.DEFAULT_STABLE_TIMEOUT,
    poll: float = 0.5,
) -> bool:
    """Block until `path` keeps the same size for `stable_seconds`."""
    if stable_seconds <= 0:
        return path.exists()
    start = time.time()
    last_size = -1
    stable_start = None
    while True:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return False
        now = time.time()
        if size == last_size:
            if stable_start is None:
                stable_start = now
            elif now - stable_start >= stable_seconds:
                return True
        else:
            stable_start = None
            last_size = size
        if now - start > timeout:
            return False
        time.sleep(poll)


class VaultEventHandler(FileSystemEventHandler):
    def __init__(
        self,
        vault: FolderVault,
        on_file_created: Callable[[FileHandle], object],
        dispatch: Callable[..., None],
        stable_seconds: float = config.DEFAULT_STABLE_SECONDS,
    ):
        """
        Args:
            vault: Vault the events belong to
            on_file_created: Plugin entry point for creation events
            dispatch: Schedules a call on the event thread, e.g. EventDispatcher.call_soon
            stable_seconds: How long a new file's size must hold before it is handed on
        """
        super().__init__()
        self.vault = vault
        self.on_file_created = on_file_created
        self.call_soon = dispatch
        self.stable_seconds = stable_seconds

    def handle_for(self, src_path: str) -> Optional[FileHandle]:
        rel = self.vault.relative(Path(src_path))
        if rel is None:
            return None
        # Hidden files and folders (including the settings folder) are not vault content
        if any(part.startswith(".") for part in rel.split("/")):
            return None
        if rel.endswith(config.TMP_SUFFIX):
            return None
        return FileHandle.from_path(rel)

    def on_created(self, event):
        if event.is_directory:
            return
        handle = self.handle_for(event.src_path)
        if handle is None:
            return
        if is_image_extension(handle.extension):
            path = Path(event.src_path)
            if not wait_for_stable_file(path, stable_seconds=self.stable_seconds):
                logger.warning(f"File did not stabilize: {path}")
                return
        logger.debug(f"Created: {handle.path}")
        self.call_soon(self.on_file_created, handle)

    def on_moved(self, event):
        if event.is_directory:
            return
        handle = self.handle_for(event.dest_path)
        if handle is None:
            return
        logger.debug(f"Moved into place: {handle.path}")
        self.call_soon(self.on_file_created, handle)


def start_watch(
    vault: FolderVault,
    on_file_created: Callable[[FileHandle], object],
    dispatcher: EventDispatcher,
    stable_seconds: float = config.DEFAULT_STABLE_SECONDS,
    codec: Optional[PillowCodec] = None,
    stop_event: Optional[threading.Event] = None,
):
    """Watch `vault` until SIGINT/SIGTERM or `stop_event` is set.

    On shutdown the codec is drained before the dispatcher so that jobs
    already encoding still get written back.
    """
    handler = VaultEventHandler(
        vault, on_file_created, dispatcher.call_soon, stable_seconds=stable_seconds
    )
    stop_event = stop_event or threading.Event()

    dispatcher.start()
    observer = Observer()
    observer.schedule(handler, str(vault.root), recursive=True)
    observer.start()

    def _on_signal(signum, frame):
        logger.info('Signal %s received, shutting down...', signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _on_signal)
    try:
        signal.signal(signal.SIGTERM, _on_signal)
    except (AttributeError, ValueError):
        # SIGTERM may not be available on Windows
        pass

    logger.info('Watching vault: %s', vault.root)
    try:
        while not stop_event.wait(0.5):
            pass
    finally:
        logger.info('Stopping observer...')
        observer.stop()
        observer.join(timeout=5)
        if codec is not None:
            logger.info('Waiting for running compressions...')
            codec.shutdown(wait=True)
        logger.info('Waiting for pending events...')
        dispatcher.stop()
        logger.info('Shutdown complete')
