"""
Sync process contract.

A sync process decides whether it reacts to an event, where its output goes
and how the content is rewritten. The dispatcher owns all file I/O around
those three calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from domains.file_sync.events import FileEvent

FilterFn = Callable[[FileEvent], bool]
TargetFn = Callable[[FileEvent], Optional[Path]]
TransformFn = Callable[[FileEvent, bytes], bytes]


class SyncProcess(ABC):
    """
    Base class for registered sync processes.

    Implementations must keep ``should_process`` and ``resolve_target`` pure
    (no I/O, no hidden mutable state). ``transform_content`` is the only
    method expected to do real work and the only one allowed to fail.
    """

    def __init__(self, name: str):
        if not name:
            raise ValueError("Sync process name must not be empty")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def accepts_origin(self, event: FileEvent) -> bool:
        """Reject events caused by this process's own writes."""
        return not event.origin.is_internal_to(self._name)

    @abstractmethod
    def should_process(self, event: FileEvent) -> bool:
        """Decide whether this process applies to ``event``."""

    @abstractmethod
    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        """Return where output goes, or None for no action."""

    @abstractmethod
    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        """Compute the new target content from the source content."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


class FunctionSyncProcess(SyncProcess):
    """Sync process assembled from three plain callables."""

    def __init__(
        self,
        name: str,
        filter: FilterFn,
        target: TargetFn,
        transform: TransformFn,
    ):
        super().__init__(name)
        self._filter = filter
        self._target = target
        self._transform = transform

    def should_process(self, event: FileEvent) -> bool:
        return bool(self._filter(event))

    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        target = self._target(event)
        return Path(target) if target is not None else None

    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        return self._transform(event, content)


def identity_transform(event: FileEvent, content: bytes) -> bytes:
    """Copy content unchanged."""
    return content
