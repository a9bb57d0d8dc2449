"""
Chat transcript processor.

A transcript is a sequence of speaker blocks separated by ``------``::

    User:
    How do I list hidden files?
    ------
    Assistant:
    Use ls -a.

When the last block belongs to the user, the transcript is sent to a text
generator and the reply is appended as a new assistant block.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Sequence, Tuple

from app.utils.llm_client import TextGenerationError
from domains.file_sync.errors import TransformError
from domains.file_sync.events import FileEvent
from domains.file_sync.processors.base import InPlaceTextProcessor

BLOCK_SEPARATOR = "------"

Transcript = List[Tuple[str, str]]
TextGenerator = Callable[[Sequence[Tuple[str, str]]], str]


def parse_transcript(content: str) -> Transcript:
    """Split a transcript into ``(speaker, text)`` pairs; blocks without text are dropped."""
    entries: Transcript = []
    lines = content.splitlines()
    i = 0

    while i < len(lines):
        line = lines[i]
        if not (line.strip() and line.endswith(":")):
            i += 1
            continue

        speaker = line.rstrip(":")
        text_lines = []
        i += 1
        while i < len(lines) and not lines[i].strip().startswith(BLOCK_SEPARATOR):
            text_lines.append(lines[i])
            i += 1

        text = "\n".join(text_lines).strip()
        if text:
            entries.append((speaker, text))

        if i < len(lines):
            i += 1

    return entries


def render_transcript(entries: Sequence[Tuple[str, str]]) -> str:
    """Render ``(speaker, text)`` pairs back into transcript form."""
    return f"\n{BLOCK_SEPARATOR}\n".join(f"{speaker}:\n{text}" for speaker, text in entries) + "\n"


class ChatProcessor(InPlaceTextProcessor):
    """Answers the user's last message in ``chat.txt`` files."""

    def __init__(
        self,
        generator: TextGenerator,
        name: str = "Chat processor",
        filename: str = "chat.txt",
        user_speaker: str = "User",
        assistant_speaker: str = "Assistant",
    ):
        super().__init__(name)
        self.generator = generator
        self.filename = filename
        self.user_speaker = user_speaker
        self.assistant_speaker = assistant_speaker

    def matches(self, path: Path) -> bool:
        return path.name == self.filename

    def rewrite(self, event: FileEvent, text: str) -> str:
        entries = parse_transcript(text)
        if not entries or entries[-1][0] != self.user_speaker:
            return text

        try:
            reply = self.generator(entries)
        except TextGenerationError as e:
            raise TransformError(f"Text generation failed: {e}", process_name=self.name, path=event.path) from e

        entries.append((self.assistant_speaker, reply.strip()))
        return render_transcript(entries)
