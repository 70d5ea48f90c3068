"""
File system watcher for the document store.

Polls the directories holding the backing files and reloads the owning
component whenever one of its files changes outside of this process.
Uses watchdog's polling observer so behaviour does not depend on native
change notification.
"""

import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Tuple

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers.polling import PollingObserver

from gst_backend.utils.helpers import epoch_ms


class Reloadable(Protocol):
    """Component that owns one or more backing files."""

    watched_paths: Tuple[Path, ...]

    def load(self): ...

    def is_stale(self, path: Path) -> bool: ...


class ReloadEventHandler(FileSystemEventHandler):
    """Watchdog handler that reloads components when their files change."""

    def __init__(self, components: Iterable[Reloadable]):
        super().__init__()
        self.owners: Dict[Path, Reloadable] = {}
        for component in components:
            for path in component.watched_paths:
                self.owners[Path(path).absolute()] = component

        self.lock = threading.Lock()
        self.last_reload: Optional[int] = None

    def on_created(self, event: FileSystemEvent):
        self._handle_change(event.src_path)

    def on_modified(self, event: FileSystemEvent):
        if event.is_directory:
            return
        self._handle_change(event.src_path)

    def on_deleted(self, event: FileSystemEvent):
        self._handle_change(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Atomic replaces show up as a move onto the watched file."""
        self._handle_change(event.src_path)
        dest = getattr(event, "dest_path", None)
        if dest:
            self._handle_change(dest)

    def _handle_change(self, raw_path) -> bool:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path).absolute()

        component = self.owners.get(path)
        if component is None:
            return False

        with self.lock:
            # Our own persist() already reloaded this content
            if not component.is_stale(path):
                return False

            component.load()
            self.last_reload = epoch_ms()

        logger.info(f"Reloaded after external change: {path.name}")
        return True


class StoreWatcher:
    """Periodic reconciliation of in-memory state with its backing files."""

    def __init__(self, components: Iterable[Reloadable], interval: float = 1.0):
        """
        Initialize store watcher.

        Args:
            components: Document store, user registry, ...
            interval: Polling interval in seconds
        """
        self.interval = interval
        self.event_handler = ReloadEventHandler(components)
        self.observer: Optional[PollingObserver] = None

    @property
    def watch_dirs(self) -> set[Path]:
        return {path.parent for path in self.event_handler.owners}

    @property
    def last_reload(self) -> Optional[int]:
        return self.event_handler.last_reload

    def start(self):
        """Start polling every directory that holds a watched file."""
        self.observer = PollingObserver(timeout=self.interval)
        self.observer.daemon = True

        for watch_dir in self.watch_dirs:
            watch_dir.mkdir(parents=True, exist_ok=True)
            self.observer.schedule(self.event_handler, str(watch_dir), recursive=False)
            logger.info(f"Watching {watch_dir}")

        self.observer.start()
        logger.success(f"Store watcher started (interval={self.interval}s)")

    def stop(self):
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None
        logger.info("Store watcher stopped")
