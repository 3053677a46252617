"""
Log File Watcher

Optional filesystem watch that drops the activity cache as soon as the log
changes. The cache already re-checks the modification marker on every read,
so a missed notification only costs freshness of the proactive drop.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class _LogChangeHandler(FileSystemEventHandler):
    def __init__(self, path: Path, on_change: Callable[[], None]) -> None:
        self._path = path
        self._on_change = on_change

    def _touches_log(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and Path(p).name == self._path.name for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or not self._touches_log(event):
            return
        logger.debug(f"Change detected on {self._path}: {event.event_type}")
        self._on_change()


class LogWatcher:
    """Watches one log file's directory and calls ``on_change`` on edits."""

    def __init__(self, path: Path | str, on_change: Callable[[], None]) -> None:
        self.path = Path(path).expanduser()
        self._on_change = on_change
        self._observer: Observer | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> bool:
        """Start watching; returns False if the directory does not exist."""
        with self._lock:
            if self._observer is not None:
                return True
            directory = self.path.parent
            if not directory.is_dir():
                logger.warning(f"Cannot watch {self.path}: directory {directory} does not exist")
                return False

            observer = Observer()
            observer.schedule(_LogChangeHandler(self.path, self._on_change), str(directory), recursive=False)
            observer.daemon = True
            observer.start()
            self._observer = observer
            logger.info(f"Watching {self.path} for changes")
            return True

    def stop(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.info(f"Stopped watching {self.path}")
