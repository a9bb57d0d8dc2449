"""Directory mirroring processors."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from app.utils.helpers import has_suffix, normalise_path, relative_within
from domains.file_sync.events import FileEvent
from domains.file_sync.process import SyncProcess, identity_transform


class DirectoryMirror(SyncProcess):
    """
    One-way mirror from ``source_root`` into ``target_root``.

    Files keep their path relative to the source root. Content is copied
    unchanged; deletions are mirrored as removals.
    """

    def __init__(
        self,
        name: str,
        source_root: Path,
        target_root: Path,
        suffixes: Iterable[str] = (),
    ):
        super().__init__(name)
        self.source_root = normalise_path(source_root)
        self.target_root = normalise_path(target_root)
        self.suffixes = list(suffixes)

    def should_process(self, event: FileEvent) -> bool:
        if not self.accepts_origin(event):
            return False
        if relative_within(event.path, self.source_root) is None:
            return False
        return has_suffix(event.path, self.suffixes)

    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        relative = relative_within(event.path, self.source_root)
        if relative is None:
            return None
        return self.target_root / relative

    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        return identity_transform(event, content)


class BidirectionalSync(SyncProcess):
    """
    Keeps two roots mirrored onto each other.

    A change under either root is copied to the same relative path under the
    other one. The process ignores its own writes, so the copy it makes does
    not bounce back.
    """

    def __init__(
        self,
        name: str,
        left_root: Path,
        right_root: Path,
        suffixes: Iterable[str] = (),
    ):
        super().__init__(name)
        self.left_root = normalise_path(left_root)
        self.right_root = normalise_path(right_root)
        self.suffixes = list(suffixes)

    def should_process(self, event: FileEvent) -> bool:
        if not self.accepts_origin(event):
            return False
        if self._counterpart(event.path) is None:
            return False
        return has_suffix(event.path, self.suffixes)

    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        return self._counterpart(event.path)

    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        return identity_transform(event, content)

    def _counterpart(self, path: Path) -> Optional[Path]:
        relative = relative_within(path, self.left_root)
        if relative is not None:
            return self.right_root / relative

        relative = relative_within(path, self.right_root)
        if relative is not None:
            return self.left_root / relative
        return None
