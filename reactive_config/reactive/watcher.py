"""
File Watcher Module.

Debounced change notifications for a single file, built on watchdog.
The parent directory is observed (so editors that replace the file by
renaming are seen too) and events for other files are ignored. Every
relevant event restarts a timer; the callback runs once the file has
been quiet for the debounce delay.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

# Event types that mean the file content may have changed.
_CHANGE_EVENTS = {"created", "modified", "moved"}


class _ConfigFileHandler(FileSystemEventHandler):
    """Forwards change events that concern the watched file."""

    def __init__(self, watcher: FileWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(p and Path(os.fsdecode(p)) == self._watcher.target for p in paths):
            logger.debug(f"Watcher event: {event.event_type} {self._watcher.target}")
            self._watcher.schedule()


class FileWatcher:
    """
    Debounced watcher of one file.

    Attributes:
        target: Absolute path of the watched file.
        delay_ms: Debounce delay in milliseconds.

    Usage::

        watcher = FileWatcher("config.json", 500, on_change)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        path: str | Path,
        delay_ms: float,
        callback: Callable[[], None],
    ) -> None:
        path = Path(path)
        self.target = path.resolve().parent / path.name
        self.delay_ms = delay_ms
        self._callback = callback
        self._lock = threading.Lock()
        self._observer: Optional[Observer] = None
        self._timer: Optional[threading.Timer] = None
        self._running = False

    @property
    def running(self) -> bool:
        """True between start() and stop()."""
        return self._running

    def start(self) -> None:
        """
        Start observing the file's directory.

        Raises:
            OSError: If the directory cannot be watched.
        """
        with self._lock:
            if self._running:
                return
            observer = Observer()
            observer.schedule(_ConfigFileHandler(self), str(self.target.parent), recursive=False)
            observer.daemon = True
            observer.start()
            self._observer = observer
            self._running = True
        logger.info(f"Watching {self.target} (debounce={self.delay_ms}ms)")

    def stop(self) -> None:
        """Stop observing and drop any pending callback. Idempotent."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            observer, self._observer = self._observer, None
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        if observer is not None:
            observer.stop()
            if observer is not threading.current_thread():
                observer.join(timeout=5.0)
        logger.info(f"Stopped watching {self.target}")

    def schedule(self) -> None:
        """(Re)start the debounce timer."""
        with self._lock:
            if not self._running:
                return
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.delay_ms / 1000, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self) -> None:
        with self._lock:
            if not self._running or self._timer is not threading.current_thread():
                return
            self._timer = None
        self._callback()
