"""
Per-path coalescing of raw change notifications.

watchdog reports a single write as several notifications (created, modified,
closed). Each of them would be classified separately, and only the first one
can consume the pending write of the process that caused it. The coalescer
merges notifications for the same path until the path has been quiet for
``debounce_seconds``:

- the latest kind wins
- CREATE followed by MODIFY stays CREATE
- REMOVE followed by CREATE becomes MODIFY

Paths are released in order of first arrival.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from loguru import logger

from domains.file_sync.events import RawChangeKind

RawChange = Tuple[Path, RawChangeKind]


@dataclass
class _PendingChange:
    kind: RawChangeKind
    last_seen: float


def merge_kinds(previous: RawChangeKind, current: RawChangeKind) -> RawChangeKind:
    """Combine two consecutive change kinds for the same path."""
    if previous is RawChangeKind.CREATE and current is RawChangeKind.MODIFY:
        return RawChangeKind.CREATE
    if previous is RawChangeKind.REMOVE and current is RawChangeKind.CREATE:
        return RawChangeKind.MODIFY
    return current


class ChangeCoalescer:
    """Buffers raw changes and releases each path once it has settled."""

    def __init__(
        self,
        debounce_seconds: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.debounce_seconds = max(debounce_seconds, 0.0)
        self._clock = clock
        self._pending: Dict[Path, _PendingChange] = {}

    def push(self, path: Path, kind: RawChangeKind) -> None:
        """Add a raw change; OTHER kinds are ignored."""
        if kind is RawChangeKind.OTHER:
            return

        now = self._clock()
        pending = self._pending.get(path)
        if pending is None:
            self._pending[path] = _PendingChange(kind=kind, last_seen=now)
            return

        merged = merge_kinds(pending.kind, kind)
        if merged is not kind:
            logger.debug(f"Coalesced {pending.kind.value}+{kind.value} -> {merged.value}: {path}")
        pending.kind = merged
        pending.last_seen = now

    def pop_ready(self) -> List[RawChange]:
        """Release every path that has been quiet for the debounce period."""
        if not self._pending:
            return []

        cutoff = self._clock() - self.debounce_seconds
        ready = [
            path for path, pending in self._pending.items()
            if pending.last_seen <= cutoff
        ]
        return [(path, self._pending.pop(path).kind) for path in ready]

    def drain(self) -> List[RawChange]:
        """Release everything regardless of age."""
        changes = [(path, pending.kind) for path, pending in self._pending.items()]
        self._pending.clear()
        return changes

    def next_deadline(self) -> float:
        """Seconds until the oldest buffered path settles (0 if none is waiting)."""
        if not self._pending:
            return 0.0
        oldest = min(pending.last_seen for pending in self._pending.values())
        return max(oldest + self.debounce_seconds - self._clock(), 0.0)

    def __len__(self) -> int:
        return len(self._pending)
