#!/usr/bin/env python3
"""
Live project watcher.

Keeps the admitted-file list of a served project current:

- watchdog event handlers only flip a dirty flag (and register newly
  created directories so nothing inside them is missed)
- a refresher thread is the sole writer of the snapshot; when the flag
  was set it re-walks the whole tree and swaps in a new snapshot
- readers take ``watcher.snapshot`` / ``get_allowed()`` without locking;
  the snapshot object is never mutated, only replaced
"""

import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Set, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .admission import AdmissionConfig, is_admitted
from .exceptions import ArkError
from .ignore import GIT_DIRNAME
from .ignore.compiler import clean_dir
from .options import FilterOptions
from .utils import get_logger
from .walker import walk

logger = get_logger("ark-watcher")

DEFAULT_REFRESH_INTERVAL = 0.5

# Access notifications never change content
IGNORED_EVENT_TYPES = {"opened", "closed", "closed_no_write"}


@dataclass(frozen=True)
class ProjectSnapshot:
    """Result of one full scan; immutable"""
    admission: AdmissionConfig
    files: Tuple[str, ...]
    directories: Tuple[str, ...]


def scan_project(root: str, filters: Optional[FilterOptions] = None) -> ProjectSnapshot:
    """
    Rebuild the ignore rules and re-walk ``root``.

    Raises:
        ConfigurationError: For an invalid filter or ignore rule
        IgnoreBuildError: If ignore discovery fails
    """
    root = clean_dir(root)
    admission = (filters or FilterOptions()).build_admission(root)
    files = []
    directories = [root]
    for entry in walk(root, admission):
        (directories if entry.is_dir else files).append(entry.path)
    logger.debug(f"Scanned {root}: {len(files)} files, {len(directories)} directories")
    return ProjectSnapshot(admission, tuple(files), tuple(directories))


class DirtyFlag:
    """A boolean with atomic swap"""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = False

    def set(self) -> None:
        with self._lock:
            self._value = True

    def is_set(self) -> bool:
        return self._value

    def swap(self, value: bool) -> bool:
        """Store ``value`` and return the previous value"""
        with self._lock:
            previous = self._value
            self._value = value
            return previous


class ProjectEventHandler(FileSystemEventHandler):
    """Forwards every watchdog event to its ProjectWatcher"""

    def __init__(self, watcher: "ProjectWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent):
        self.watcher.handle_event(event)


class ProjectWatcher:
    """
    Watches a project directory and keeps its admitted-file snapshot fresh.

    Args:
        root: Directory to serve
        scan: Callable producing a new ProjectSnapshot for the root
        interval: Seconds between dirty-flag checks
        observer_factory: Creates the watchdog observer
    """

    def __init__(self, root: str,
                 scan: Callable[[str], ProjectSnapshot] = scan_project,
                 interval: float = DEFAULT_REFRESH_INTERVAL,
                 observer_factory: Callable[[], Observer] = Observer):
        self.root = clean_dir(root)
        self.scan = scan
        self.interval = interval
        self._observer_factory = observer_factory

        self._snapshot: Optional[ProjectSnapshot] = None
        self._dirty = DirtyFlag()
        self._observer = None
        self._handler = ProjectEventHandler(self)
        self._watched: Set[str] = set()
        self._watch_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def snapshot(self) -> ProjectSnapshot:
        if self._snapshot is None:
            self._snapshot = self.scan(self.root)
        return self._snapshot

    def get_allowed(self) -> Tuple[str, ...]:
        """Current admitted files; may be one refresh cycle stale"""
        return self.snapshot.files

    def should_refresh(self) -> bool:
        return self._dirty.is_set()

    def mark_dirty(self) -> None:
        self._dirty.set()

    def refresh_if_dirty(self) -> bool:
        """
        Re-scan when the dirty flag was set.

        The flag is cleared before scanning, so events arriving during the
        scan schedule another refresh.

        Returns:
            True if a new snapshot was installed
        """
        if not self._dirty.swap(False):
            return False

        try:
            snapshot = self.scan(self.root)
        except BaseException:
            self._dirty.set()
            raise

        self._snapshot = snapshot
        logger.info(f"Refreshed {self.root}: {len(snapshot.files)} files")

        if self._observer is not None:
            for directory in snapshot.directories:
                self.add_directory(directory)
        return True

    def handle_event(self, event: FileSystemEvent) -> None:
        """Triage one watchdog event"""
        if event.event_type in IGNORED_EVENT_TYPES:
            return

        paths = [os.fsdecode(event.src_path)]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(os.fsdecode(dest_path))

        admission = self.snapshot.admission
        relevant = [
            p for p in paths
            if GIT_DIRNAME not in p.split(os.sep) and is_admitted(admission, p, is_dir=event.is_directory)
        ]
        if not relevant:
            logger.trace("Ignoring %s event for %s", event.event_type, paths[0])
            return

        logger.debug(f"{event.event_type}: {relevant[-1]}")
        self._dirty.set()

        if event.is_directory and event.event_type in ("created", "moved"):
            self.add_directory(relevant[-1])

    def add_directory(self, path: str) -> None:
        """Watch ``path`` (non-recursively). Directories are never unwatched."""
        if self._observer is None:
            return
        path = clean_dir(path)
        with self._watch_lock:
            if path in self._watched:
                return
            try:
                self._observer.schedule(self._handler, path, recursive=False)
            except OSError as e:
                # Already gone again; its parent's events still cover it
                logger.debug(f"Cannot watch {path}: {e}")
                return
            self._watched.add(path)
        logger.debug(f"Watching directory: {path}")

    def get_watched_paths(self):
        with self._watch_lock:
            return sorted(self._watched)

    def start(self) -> None:
        """Take the initial snapshot, start the observer and refresher"""
        if self._observer is not None:
            logger.warning("Watcher already running")
            return

        snapshot = self.snapshot
        self._observer = self._observer_factory()
        for directory in snapshot.directories:
            self.add_directory(directory)
        self._observer.start()

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._refresh_loop, name="ark-refresher", daemon=True)
        self._thread.start()
        logger.info(f"Watching {self.root} ({len(self._watched)} directories)")

    def _refresh_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.refresh_if_dirty()
            except (ArkError, OSError) as e:
                logger.error(f"Refresh of {self.root} failed, will retry: {e}")

    def stop(self) -> None:
        if self._observer is None:
            return

        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Refresher thread did not stop cleanly")
            self._thread = None

        self._observer.stop()
        self._observer.join()
        self._observer = None
        with self._watch_lock:
            self._watched.clear()
        logger.info("Watcher stopped")

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
