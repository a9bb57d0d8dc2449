"""
Documentation index processor.

Whenever a markdown file changes, ``index.doku`` in the same directory is
regenerated with one entry per markdown file found below that directory.

Index format::

    # Documentation Index

    ## File: guide/setup.md
    **Path:** guide/setup.md
    **Last Updated:** 2025-01-19 10:30:00
    **Summary:**
    First 300 characters of cleaned content...

    ---

    Last Updated: 2025-01-19 10:30:00
    Total Files: 1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from loguru import logger

from app.utils.helpers import format_timestamp
from domains.file_sync.events import EventKind, FileEvent
from domains.file_sync.process import SyncProcess

INDEX_TITLE = "# Documentation Index"
SUMMARY_LENGTH = 300
NO_CONTENT = "[No content]"


@dataclass
class DocEntry:
    path: str
    summary: str
    last_updated: str


@dataclass
class DocIndex:
    entries: List[DocEntry] = field(default_factory=list)

    def add_entry(self, entry: DocEntry) -> None:
        self.entries.append(entry)

    def render(self, generated_at: str) -> str:
        parts = [f"{INDEX_TITLE}\n\n"]
        for entry in self.entries:
            parts.append(
                f"## File: {entry.path}\n"
                f"**Path:** {entry.path}\n"
                f"**Last Updated:** {entry.last_updated}\n"
                f"**Summary:**\n"
                f"{entry.summary}\n"
                f"\n---\n\n"
            )
        parts.append(f"Last Updated: {generated_at}\n")
        parts.append(f"Total Files: {len(self.entries)}\n")
        return "".join(parts)


def create_summary(content: str, max_length: int = SUMMARY_LENGTH) -> str:
    """Build a plain-text summary from markdown, skipping headings and rules."""
    summary = ""
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or stripped.startswith("---"):
            continue

        clean = stripped
        for token in ("**", "_", "`", "[", "]"):
            clean = clean.replace(token, "")

        if not summary:
            summary = clean
        elif len(summary) < max_length:
            summary = f"{summary} {clean}"

        if len(summary) >= max_length:
            summary = summary[:max_length] + "..."
            break

    return summary or NO_CONTENT


def scan_markdown_files(root: Path) -> List[Tuple[Path, str]]:
    """Collect ``(path, content)`` for every readable markdown file below ``root``."""
    files = []
    for path in sorted(root.rglob("*.md")):
        if not path.is_file():
            continue
        try:
            files.append((path, path.read_text(encoding="utf-8", errors="replace")))
        except OSError as e:
            logger.debug(f"Skipping unreadable markdown file {path}: {e}")
    return files


class DocIndexProcessor(SyncProcess):
    """Regenerates ``index.doku`` next to changed markdown files."""

    def __init__(
        self,
        name: str = "Doku processor",
        index_name: str = "index.doku",
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(name)
        self.index_name = index_name
        self.clock = clock

    def should_process(self, event: FileEvent) -> bool:
        if event.kind is EventKind.DELETE:
            return False
        return self.accepts_origin(event) and event.path.suffix == ".md"

    def resolve_target(self, event: FileEvent) -> Optional[Path]:
        return event.path.parent / self.index_name

    def transform_content(self, event: FileEvent, content: bytes) -> bytes:
        directory = event.path.parent
        now = format_timestamp(self.clock())

        index = DocIndex()
        for path, text in scan_markdown_files(directory):
            relative = path.relative_to(directory).as_posix()
            index.add_entry(DocEntry(relative, create_summary(text), now))

        index.entries.sort(key=lambda entry: entry.path)
        return index.render(now).encode("utf-8")
