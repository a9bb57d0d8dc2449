"""Error taxonomy for the sync engine."""

from pathlib import Path
from typing import Optional


class SyncError(Exception):
    """Base class for failures raised while syncing files."""

    def __init__(
        self,
        message: str,
        *,
        process_name: Optional[str] = None,
        path: Optional[Path] = None,
    ):
        super().__init__(message)
        self.process_name = process_name
        self.path = path


class ReadError(SyncError):
    """The source file of an event could not be read."""


class TransformError(SyncError):
    """A processor could not compute new content (bad input, remote failure)."""


class WriteError(SyncError):
    """The destination could not be written or removed."""


class WatchError(SyncError):
    """The watch mechanism failed, e.g. a watched root became inaccessible."""
