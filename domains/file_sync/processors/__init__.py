"""
Sync Processors

Bundled sync processes:
- mirror.py - One-way and bidirectional directory mirroring
- todo.py - Sorts todo lists in place
- command.py - Executes shell commands written into command logs
- doku.py - Maintains a documentation index next to markdown files
- chat.py - Answers chat transcripts through a text generator
"""

from typing import Callable, Dict, List, Optional

from loguru import logger

from app.utils.config import Settings
from domains.file_sync.process import SyncProcess
from domains.file_sync.processors.chat import ChatProcessor, TextGenerator
from domains.file_sync.processors.command import CommandProcessor
from domains.file_sync.processors.doku import DocIndexProcessor
from domains.file_sync.processors.mirror import BidirectionalSync, DirectoryMirror
from domains.file_sync.processors.todo import TodoProcessor


def _build_mirror(settings: Settings, generator: Optional[TextGenerator]) -> SyncProcess:
    return DirectoryMirror(
        f"{settings.mirror_source}->{settings.mirror_target}",
        source_root=settings.resolve_root(settings.mirror_source),
        target_root=settings.resolve_root(settings.mirror_target),
        suffixes=settings.get_mirror_suffixes(),
    )


def _build_bidirectional(settings: Settings, generator: Optional[TextGenerator]) -> SyncProcess:
    return BidirectionalSync(
        f"{settings.bidirectional_left}<->{settings.bidirectional_right}",
        left_root=settings.resolve_root(settings.bidirectional_left),
        right_root=settings.resolve_root(settings.bidirectional_right),
    )


def _build_todo(settings: Settings, generator: Optional[TextGenerator]) -> SyncProcess:
    return TodoProcessor()


def _build_command(settings: Settings, generator: Optional[TextGenerator]) -> SyncProcess:
    return CommandProcessor(timeout=settings.command_timeout)


def _build_doku(settings: Settings, generator: Optional[TextGenerator]) -> SyncProcess:
    return DocIndexProcessor()


def _build_chat(settings: Settings, generator: Optional[TextGenerator]) -> Optional[SyncProcess]:
    if generator is None:
        from app.utils.llm_client import get_text_generation_client

        client = get_text_generation_client()
        if not client.configured:
            logger.warning("Chat processor disabled: OPENAI_API_KEY is not configured")
            return None
        generator = client.generate
    return ChatProcessor(generator)


PROCESSOR_FACTORIES: Dict[str, Callable[[Settings, Optional[TextGenerator]], Optional[SyncProcess]]] = {
    "mirror": _build_mirror,
    "bidirectional": _build_bidirectional,
    "todo": _build_todo,
    "command": _build_command,
    "doku": _build_doku,
    "chat": _build_chat,
}


def build_processes(settings: Settings, generator: Optional[TextGenerator] = None) -> List[SyncProcess]:
    """
    Build the processors named in ``settings.enabled_processors``, in order.

    Args:
        settings: Application settings
        generator: Text generator for the chat processor (defaults to the
            configured remote client)

    Returns:
        List of sync processes

    Raises:
        ValueError: If an unknown processor is requested
    """
    processes: List[SyncProcess] = []
    for name in settings.get_enabled_processors():
        factory = PROCESSOR_FACTORIES.get(name)
        if factory is None:
            available = ", ".join(PROCESSOR_FACTORIES)
            raise ValueError(f"Unknown processor '{name}'. Available: {available}")

        process = factory(settings, generator)
        if process is not None:
            processes.append(process)
    return processes


__all__ = [
    "BidirectionalSync",
    "ChatProcessor",
    "CommandProcessor",
    "DirectoryMirror",
    "DocIndexProcessor",
    "TodoProcessor",
    "build_processes",
]
