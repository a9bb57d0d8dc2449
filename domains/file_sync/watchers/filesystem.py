"""
File system watcher for the sync engine.

Monitors the configured roots and feeds every change through the coalescer
into the dispatcher. Uses watchdog library for cross-platform file system
event monitoring. The observer thread only enqueues; classification and
dispatch run on the thread that calls ``run()``, one notification at a time.
"""

import os
import queue
import signal
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.helpers import normalise_path
from domains.file_sync.coalescer import ChangeCoalescer, RawChange
from domains.file_sync.dispatcher import Dispatcher
from domains.file_sync.errors import WatchError
from domains.file_sync.events import RawChangeKind


class SyncEventHandler(FileSystemEventHandler):
    """Translates watchdog events into raw changes on a queue."""

    def __init__(self, changes: "queue.Queue[RawChange]"):
        """
        Initialize event handler.

        Args:
            changes: Queue consumed by the dispatch loop
        """
        super().__init__()
        self.changes = changes
        self.excluded_suffixes = {".swp", ".swx", ".tmp", "~"}

    def should_process(self, path: Path) -> bool:
        """Skip editor scratch files."""
        return not any(path.name.endswith(suffix) for suffix in self.excluded_suffixes)

    def on_created(self, event: FileSystemEvent):
        """Handle file creation."""
        if event.is_directory:
            return
        self._enqueue(event.src_path, RawChangeKind.CREATE)

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification."""
        # Skip directory modifications (too noisy)
        if event.is_directory:
            return
        self._enqueue(event.src_path, RawChangeKind.MODIFY)

    def on_deleted(self, event: FileSystemEvent):
        """Handle file deletion."""
        if event.is_directory:
            return
        self._enqueue(event.src_path, RawChangeKind.REMOVE)

    def on_moved(self, event: FileSystemEvent):
        """Handle rename/move as removal of the source plus creation of the destination."""
        if event.is_directory:
            return
        self._enqueue(event.src_path, RawChangeKind.REMOVE)
        dest = getattr(event, "dest_path", None)
        if dest:
            self._enqueue(dest, RawChangeKind.CREATE)

    def on_closed(self, event: FileSystemEvent):
        """Close notifications carry no change of their own."""
        if event.is_directory:
            return
        self._enqueue(event.src_path, RawChangeKind.OTHER)

    def _enqueue(self, raw_path, kind: RawChangeKind) -> None:
        path = Path(os.fsdecode(raw_path))
        if not self.should_process(path):
            return
        self.changes.put((path, kind))


class SyncWatcher:
    """File system monitoring orchestrator for the sync engine."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        roots: Iterable[Path],
        debounce_seconds: float = 0.25,
        poll_interval: float = 1.0,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Initialize sync watcher.

        Args:
            dispatcher: Dispatcher driving the registered processes
            roots: Directories to watch recursively
            debounce_seconds: Quiet period before a path is dispatched
            poll_interval: Maximum wait between loop iterations (seconds)
            observer_factory: Callable creating the watchdog observer
        """
        self.dispatcher = dispatcher
        self.roots = [normalise_path(root) for root in roots]
        self.poll_interval = poll_interval
        self.changes: "queue.Queue[RawChange]" = queue.Queue()
        self.event_handler = SyncEventHandler(self.changes)
        self.coalescer = ChangeCoalescer(debounce_seconds)

        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._stop_event = threading.Event()
        self._watched: list[Path] = []
        self._lost_roots: set[Path] = set()
        self.discarded = 0

        logger.info(f"Sync watcher initialized for roots: {[str(root) for root in self.roots]}")

    @property
    def watched_roots(self) -> list[Path]:
        return list(self._watched)

    def start_watching(self):
        """Start watching all configured roots."""
        self._observer = self._observer_factory()

        for root in self.roots:
            if not root.is_dir():
                logger.error(f"Watch root does not exist or is not a directory: {root}")
                continue

            try:
                self._observer.schedule(self.event_handler, str(root), recursive=True)
                self._watched.append(root)
                logger.success(f"Started watching: {root}")

            except Exception as e:
                logger.error(f"Failed to watch {root}: {e}")

        if not self._watched:
            self._observer = None
            raise WatchError("None of the configured roots could be watched")

        try:
            self._observer.start()
        except OSError as e:
            self._observer = None
            raise WatchError(f"Failed to start file system observer: {e}") from e

        logger.success(
            f"Sync watcher running with {len(self.dispatcher.processes)} processes, "
            f"watching {len(self._watched)} roots"
        )

    def stop_watching(self):
        """Stop the observer."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        logger.info("File system observer stopped")

    def stop(self):
        """Signal the run loop to stop after the current dispatch."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def process_pending(self, timeout: float = 0.0) -> int:
        """
        Move queued changes into the coalescer and dispatch settled paths.

        Args:
            timeout: How long to wait for the first change

        Returns:
            Number of notifications dispatched
        """
        try:
            change = self.changes.get(timeout=timeout) if timeout > 0 else self.changes.get_nowait()
        except queue.Empty:
            change = None

        while change is not None:
            self.coalescer.push(*change)
            try:
                change = self.changes.get_nowait()
            except queue.Empty:
                change = None

        dispatched = 0
        ready = self.coalescer.pop_ready()
        for index, (path, kind) in enumerate(ready):
            if self._stop_event.is_set():
                self.discarded += len(ready) - index
                break
            try:
                self.dispatcher.dispatch(path, kind)
            except Exception:
                logger.exception(f"Dispatch failed for {kind.value} notification: {path}")
            dispatched += 1
        return dispatched

    def check_roots(self) -> list[Path]:
        """Report watched roots that are no longer accessible."""
        lost = []
        for root in self._watched:
            if root.is_dir():
                if root in self._lost_roots:
                    self._lost_roots.discard(root)
                    logger.warning(f"Watched root is accessible again: {root}")
                continue

            lost.append(root)
            if root not in self._lost_roots:
                self._lost_roots.add(root)
                error = WatchError(f"Watched root became inaccessible: {root}", path=root)
                logger.error(f"{error}; continuing with the remaining roots")
        return lost

    def install_signal_handlers(self):
        """Stop on SIGINT/SIGTERM."""

        def _signal_handler(signum, frame):  # noqa: D401
            logger.info(f"Received signal {signum}, shutting down.")
            self.stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

    def run(self):
        """Run the sync watcher until stopped."""
        logger.info("Starting sync watcher...")
        self.start_watching()

        try:
            while not self._stop_event.is_set():
                timeout = self.poll_interval
                if len(self.coalescer):
                    timeout = min(timeout, max(self.coalescer.next_deadline(), 0.01))
                self.process_pending(timeout=timeout)
                self.check_roots()

        except KeyboardInterrupt:
            logger.info("Sync watcher interrupted by user")

        finally:
            self.stop_watching()
            self.discarded += len(self.coalescer.drain()) + self.changes.qsize()
            if self.discarded:
                logger.info(f"Discarded {self.discarded} undispatched notifications")
            stats = self.dispatcher.stats
            logger.info(
                f"Sync watcher stopped after {stats.events} events, "
                f"{stats.writes} writes, {stats.removals} removals, {stats.failures} failures"
            )
