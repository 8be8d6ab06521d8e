"""File system watcher that keeps the current directory listing fresh."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer


class DirectoryEventHandler(FileSystemEventHandler):
    """Handler for changes inside one directory, with debouncing."""

    def __init__(
        self,
        directory: str,
        on_change: Callable[[str], None],
        debounce_seconds: float = 0.5,
    ):
        super().__init__()
        self.directory = directory
        self.on_change = on_change
        self.debounce_seconds = debounce_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def _schedule_update(self, path: str) -> None:
        """Schedule a debounced change notification."""
        logger.debug("Directory change detected: %s", path)
        with self._lock:
            # Cancel existing timer
            if self._timer:
                self._timer.cancel()

            self._timer = threading.Timer(
                self.debounce_seconds,
                self._process_pending,
            )
            self._timer.daemon = True
            self._timer.start()

    def _process_pending(self) -> None:
        with self._lock:
            self._timer = None
        self.on_change(self.directory)

    def cancel(self) -> None:
        """Drop a pending notification."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None

    def on_created(self, event: FileSystemEvent) -> None:
        self._schedule_update(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._schedule_update(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._schedule_update(event.src_path)


class DirectoryWatcher:
    """Watches the directory shown by a navigation view.

    `on_change` is called from a watcher thread with the watched
    directory; hosts must hand it over to their UI thread.
    """

    def __init__(self, on_change: Callable[[str], None]):
        self.on_change = on_change
        self._observer: Observer | None = None
        self._handler: DirectoryEventHandler | None = None
        self._directory: str | None = None

    @property
    def directory(self) -> str | None:
        return self._directory

    def watch(self, directory: str) -> None:
        """Start watching `directory`, replacing any previous one."""
        if directory == self._directory and self._observer is not None:
            return
        self.stop()

        self._handler = DirectoryEventHandler(directory, self.on_change)
        self._observer = Observer()
        self._observer.daemon = True
        try:
            self._observer.schedule(self._handler, directory, recursive=False)
            self._observer.start()
        except OSError as e:
            # Unreadable directories are still browsable through the console
            logger.warning("Unable to watch %s: %s", directory, e)
            self._observer = None
            self._handler = None
            return
        self._directory = directory
        logger.info("Directory watcher started: %s", directory)

    def stop(self) -> None:
        """Stop watching."""
        if self._handler is not None:
            self._handler.cancel()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=1.0)
        self._observer = None
        self._handler = None
        self._directory = None

    def __enter__(self) -> "DirectoryWatcher":
        return self

    def __exit__(self, *args) -> None:
        self.stop()
