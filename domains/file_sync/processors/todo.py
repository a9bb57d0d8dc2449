"""
Todo list processor.

File format::

    Neues Todo:
    <one new todo per line>

    Todos:
    [] open todo
    -----------------
    [x] completed todo

Lines typed under ``Neues Todo:`` become open todos at the top of the list;
completed todos are moved below the separator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from domains.file_sync.events import FileEvent
from domains.file_sync.processors.base import InPlaceTextProcessor

NEW_TODO_HEADER = "Neues Todo:"
TODOS_HEADER = "Todos:"
SEPARATOR = "-----------------"


@dataclass
class TodoEntry:
    text: str
    completed: bool = False


@dataclass
class TodoLog:
    entries: List[TodoEntry] = field(default_factory=list)

    @classmethod
    def parse(cls, content: str) -> TodoLog:
        new_todos: List[TodoEntry] = []
        active: List[TodoEntry] = []
        completed: List[TodoEntry] = []
        in_new_section = False
        in_completed_section = False

        for line in content.splitlines():
            stripped = line.strip()

            if stripped.startswith(NEW_TODO_HEADER):
                in_new_section = True
                in_completed_section = False
                continue
            if stripped.startswith(TODOS_HEADER):
                in_new_section = False
                continue
            if not stripped:
                continue
            if stripped.startswith(SEPARATOR):
                in_completed_section = True
                continue

            if in_new_section:
                new_todos.append(TodoEntry(stripped))
                continue

            entry = _parse_checkbox(stripped)
            if entry is None:
                continue
            if in_completed_section:
                completed.append(entry)
            else:
                active.append(entry)

        return cls(new_todos + active + completed)

    def render(self) -> str:
        lines = [NEW_TODO_HEADER, "", TODOS_HEADER]
        lines.extend(f"[] {entry.text}" for entry in self.entries if not entry.completed)

        done = [entry for entry in self.entries if entry.completed]
        if done:
            lines.append(SEPARATOR)
            lines.extend(f"[x] {entry.text}" for entry in done)

        return "\n".join(lines) + "\n"


def _parse_checkbox(line: str) -> Optional[TodoEntry]:
    if not line.startswith("["):
        return None
    close = line.find("]")
    if close < 1:
        return None

    checkbox = line[1:close].strip()
    text = line[close + 1:].strip()
    return TodoEntry(text, completed=checkbox in ("x", "X"))


class TodoProcessor(InPlaceTextProcessor):
    """Keeps ``*.todo`` files sorted: new entries on top, completed at the bottom."""

    def __init__(self, name: str = "Todo processor", suffix: str = ".todo"):
        super().__init__(name)
        self.suffix = suffix

    def matches(self, path: Path) -> bool:
        return path.name.endswith(self.suffix)

    def rewrite(self, event: FileEvent, text: str) -> str:
        return TodoLog.parse(text).render()
