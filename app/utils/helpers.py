"""
Helper utilities for mara-sync.

Path and time functions shared by the sync engine and its processors.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union


def normalise_path(path: Union[str, Path]) -> Path:
    """
    Return an absolute, resolved version of ``path`` without forcing existence.

    Falls back to the path as given when the working directory cannot be
    determined, so callers always get a usable value.
    """
    path = Path(path)
    try:
        path = path.expanduser()
        return path.resolve()
    except (OSError, RuntimeError, ValueError):
        pass

    try:
        return path.absolute()
    except (OSError, ValueError):
        return path


def absolute_path(path: Union[str, Path]) -> Path:
    """Make ``path`` absolute and collapse ``..`` lexically, without touching the filesystem."""
    return Path(os.path.abspath(Path(path).expanduser()))


def relative_within(path: Path, root: Path) -> Optional[Path]:
    """
    Return ``path`` relative to ``root``.

    Comparison is lexical, so pass roots through ``normalise_path`` once up
    front.

    Args:
        path: Candidate path
        root: Root directory

    Returns:
        Relative path, or None if ``path`` is ``root`` itself or lies outside it
    """
    try:
        relative = absolute_path(path).relative_to(absolute_path(root))
    except ValueError:
        return None

    if not relative.parts:
        return None
    return relative


def has_suffix(path: Path, suffixes: List[str]) -> bool:
    """Check if the file name ends with one of ``suffixes`` (empty list matches all)."""
    if not suffixes:
        return True
    return any(path.name.endswith(suffix) for suffix in suffixes)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a local timestamp as ``YYYY-MM-DD HH:MM:SS``."""
    moment = moment or datetime.now()
    return moment.strftime("%Y-%m-%d %H:%M:%S")
