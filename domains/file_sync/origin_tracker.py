"""
Origin tracking for self-written files.

Every write a sync process performs produces a filesystem notification of
its own. The tracker remembers pending writes so that notification can be
attributed to the process that caused it instead of being treated as an
external edit.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Deque, Dict, Union

from loguru import logger

from app.utils.helpers import normalise_path
from domains.file_sync.events import EXTERNAL, EventOrigin

DEFAULT_PENDING_WRITE_TTL = 30.0


@dataclass(frozen=True, slots=True)
class TargetMapping:
    """A pending write of ``target_path`` by ``process_name``."""

    target_path: Path
    process_name: str
    recorded_at: float


class OriginTracker:
    """
    Registry of pending internal writes, consumed once per notification.

    Mappings for the same path are kept in FIFO order: the oldest pending
    entry matches first and only that entry is removed. Both public
    operations run under one lock.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_PENDING_WRITE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize tracker.

        Args:
            ttl: Seconds after which an unconsumed mapping expires (0 keeps
                mappings until consumed). Writes outside every watched root
                never produce a notification, so their mappings rely on expiry.
            clock: Monotonic time source
        """
        self._ttl = ttl
        self._clock = clock
        self._pending: Dict[Path, Deque[TargetMapping]] = {}
        self._lock = threading.Lock()

    def record_pending_write(self, target_path: Union[str, Path], process_name: str) -> TargetMapping:
        """Register a write that is about to happen. Call before touching the disk."""
        mapping = TargetMapping(
            target_path=normalise_path(target_path),
            process_name=process_name,
            recorded_at=self._clock(),
        )
        with self._lock:
            self._pending.setdefault(mapping.target_path, deque()).append(mapping)
        return mapping

    def classify_and_consume(self, path: Union[str, Path]) -> EventOrigin:
        """
        Classify a notification for ``path``.

        Returns:
            Internal origin of the oldest pending write to ``path`` (which is
            consumed), or External when nothing is pending
        """
        key = normalise_path(path)
        with self._lock:
            self._expire_locked()
            queue = self._pending.get(key)
            if not queue:
                return EXTERNAL

            mapping = queue.popleft()
            if not queue:
                del self._pending[key]

        return EventOrigin.internal(mapping.process_name)

    def release_pending_write(self, target_path: Union[str, Path], process_name: str) -> bool:
        """
        Withdraw the most recent pending write by ``process_name`` to ``target_path``.

        Used when the announced write never reached the disk, so it will not
        produce a notification.

        Returns:
            True if a mapping was removed
        """
        key = normalise_path(target_path)
        with self._lock:
            queue = self._pending.get(key)
            if not queue:
                return False

            for index in range(len(queue) - 1, -1, -1):
                if queue[index].process_name == process_name:
                    del queue[index]
                    if not queue:
                        del self._pending[key]
                    return True

        return False

    def pending_count(self) -> int:
        """Number of writes still waiting for their notification."""
        with self._lock:
            return sum(len(queue) for queue in self._pending.values())

    def __len__(self) -> int:
        return self.pending_count()

    def _expire_locked(self) -> None:
        if self._ttl <= 0 or not self._pending:
            return

        cutoff = self._clock() - self._ttl
        for key in list(self._pending):
            queue = self._pending[key]
            while queue and queue[0].recorded_at < cutoff:
                stale = queue.popleft()
                logger.debug(f"Expired pending write by {stale.process_name}: {stale.target_path}")
            if not queue:
                del self._pending[key]
