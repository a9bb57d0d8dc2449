"""Event models shared across the sync engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional


class EventKind(str, Enum):
    """Classified kinds of filesystem change offered to sync processes."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


class RawChangeKind(str, Enum):
    """Change kinds as reported by the watch mechanism."""

    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class EventOrigin:
    """Who caused a change: an external actor, or a named sync process."""

    process_name: Optional[str] = None

    @classmethod
    def external(cls) -> EventOrigin:
        return cls()

    @classmethod
    def internal(cls, process_name: str) -> EventOrigin:
        return cls(process_name=process_name)

    @property
    def is_external(self) -> bool:
        return self.process_name is None

    def is_internal_to(self, process_name: str) -> bool:
        return self.process_name == process_name

    def __str__(self) -> str:
        if self.process_name is None:
            return "[EXT]"
        return f"[INT:{self.process_name}]"


EXTERNAL = EventOrigin.external()


@dataclass(frozen=True, slots=True)
class FileEvent:
    """A single classified change observed in a watched tree."""

    path: Path
    kind: EventKind
    origin: EventOrigin = EXTERNAL

    @classmethod
    def new(cls, path: Path, kind: EventKind) -> FileEvent:
        return cls(path=Path(path), kind=kind)

    def with_origin(self, origin: EventOrigin) -> FileEvent:
        return replace(self, origin=origin)

    def describe(self) -> str:
        return f"{self.kind.name} {self.origin} | {self.path}"
