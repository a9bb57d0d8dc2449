"""Shared base for processors that rewrite a text file in place."""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Optional

from domains.file_sync.events import EventKind, FileEvent
from domains.file_sync.process import SyncProcess


class InPlaceTextProcessor(SyncProcess):
    """
    Read-modify-write processor whose target is the changed file itself.

    Subclasses choose the files they own via ``matches`` and rewrite decoded
    text in ``rewrite``. Deletions are ignored.
    """

    encoding = "utf-8"

    @abstractmethod
    def matches(self, path: Path) -> bool:
        """Whether this processor owns ``path``."""

    @abstractmethod
    def rewrite(self, event: FileEvent, text: str) -> str:
        """Return the new file content."""

    def should_process(self, event: FileEvent) -> bool:
        if event.kind is EventKind.DELETE:
            return False
        return self.accepts_origin(event) and self.matches(event.path)

    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        return event.path

    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        text = content.decode(self.encoding, errors="replace")
        return self.rewrite(event, text).encode(self.encoding)
