"""
Command log processor.

A ``*.command`` file is a list of blocks::

    <command>
    ------
    <result>
    -----

Commands whose result is still empty are executed in a shell and their
output is written back into the file.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from domains.file_sync.events import FileEvent
from domains.file_sync.processors.base import InPlaceTextProcessor

COMMAND_SEPARATOR = "------"
ENTRY_SEPARATOR = "-----"


@dataclass
class CommandEntry:
    command: str
    result: Optional[str] = None

    @property
    def pending(self) -> bool:
        return not self.result


@dataclass
class CommandLog:
    entries: List[CommandEntry] = field(default_factory=list)

    def add_entry(self, entry: CommandEntry) -> None:
        self.entries.append(entry)

    @classmethod
    def parse(cls, content: str) -> CommandLog:
        log = cls()
        lines = content.splitlines()
        i = 0

        while i < len(lines):
            line = lines[i].strip()
            if not line or line.startswith(ENTRY_SEPARATOR):
                i += 1
                continue

            command_lines = []
            while i < len(lines) and not lines[i].strip().startswith(COMMAND_SEPARATOR):
                command_lines.append(lines[i])
                i += 1
            command = "\n".join(command_lines).strip()
            if not command:
                continue

            if i < len(lines):
                i += 1

            result_lines = []
            while i < len(lines) and not lines[i].strip().startswith(ENTRY_SEPARATOR):
                result_lines.append(lines[i])
                i += 1
            result = "\n".join(result_lines).strip() or None

            if i < len(lines):
                i += 1

            log.add_entry(CommandEntry(command, result))

        return log

    def render(self) -> str:
        return "".join(
            f"{entry.command}\n{COMMAND_SEPARATOR}\n{entry.result or ''}\n{ENTRY_SEPARATOR}\n"
            for entry in self.entries
        )


def run_shell_command(command: str, timeout: float = 30.0) -> str:
    """Run ``command`` in a shell and return stdout followed by stderr."""
    try:
        completed = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return f"Command timed out after {timeout:g}s"
    except OSError as e:
        return f"Error executing command: {e}"

    return (completed.stdout + completed.stderr).rstrip("\n")


class CommandProcessor(InPlaceTextProcessor):
    """Executes pending commands in ``*.command`` files and records their output."""

    def __init__(
        self,
        name: str = "Command processor",
        suffix: str = ".command",
        timeout: float = 30.0,
        runner: Optional[Callable[[str], str]] = None,
    ):
        super().__init__(name)
        self.suffix = suffix
        self.timeout = timeout
        self.runner = runner or (lambda command: run_shell_command(command, timeout=self.timeout))

    def matches(self, path: Path) -> bool:
        return path.name.endswith(self.suffix)

    def rewrite(self, event: FileEvent, text: str) -> str:
        log = CommandLog.parse(text)
        for entry in log.entries:
            if entry.pending:
                logger.info(f"[{self.name}] Executing: {entry.command}")
                entry.result = self.runner(entry.command)
        return log.render()
