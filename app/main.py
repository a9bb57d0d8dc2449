"""
mara-sync - Main entry point

Watches the configured directories and runs the registered sync processes:
- Directory mirroring (one-way and bidirectional)
- In-place text processors (todo lists, command logs, chat transcripts)
- Documentation index generation
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from app.utils.config import Settings, get_settings
from domains.file_sync.dispatcher import Dispatcher
from domains.file_sync.errors import WatchError
from domains.file_sync.origin_tracker import OriginTracker
from domains.file_sync.processors import PROCESSOR_FACTORIES, build_processes
from domains.file_sync.watchers.filesystem import SyncWatcher

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO"):
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch directories and keep them in sync through registered sync processes.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Base directory for the bundled roots (default: SYNC_ROOT or ./_mara).",
    )
    parser.add_argument(
        "--watch",
        type=Path,
        action="append",
        default=[],
        help="Directory to watch recursively (can be repeated; default: the root).",
    )
    parser.add_argument(
        "--processors",
        default=None,
        help=f"Comma-separated processors to register, in order ({', '.join(PROCESSOR_FACTORIES)}).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument(
        "--no-bootstrap",
        action="store_true",
        help="Do not create the bundled root directories at startup.",
    )

    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Build settings, letting CLI arguments override the environment."""
    overrides = {}
    if args.root is not None:
        overrides["sync_root"] = args.root
    if args.watch:
        overrides["watch_paths"] = ",".join(str(path) for path in args.watch)
    if args.processors is not None:
        overrides["enabled_processors"] = args.processors
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    if not overrides:
        return get_settings()
    return Settings(**overrides)


def bootstrap_directories(settings: Settings):
    """Create the bundled roots so they can be watched."""
    for root in settings.get_bundled_roots():
        root.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory: {root}")


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI."""

    args = parse_args(argv)
    configure_logging(args.log_level or "INFO")

    try:
        settings = load_settings(args)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    configure_logging(settings.log_level)
    logger.info("mara-sync - File Sync Manager")

    if not args.no_bootstrap:
        try:
            bootstrap_directories(settings)
        except OSError as e:
            logger.error(f"Failed to create sync directories: {e}")
            return 1

    try:
        processes = build_processes(settings)
    except ValueError as e:
        logger.error(str(e))
        return 2

    if not processes:
        logger.error("No sync processes registered!")
        return 1

    dispatcher = Dispatcher(
        processes,
        tracker=OriginTracker(ttl=settings.pending_write_ttl),
        skip_unchanged_writes=settings.skip_unchanged_writes,
    )
    watcher = SyncWatcher(
        dispatcher,
        settings.get_watch_paths(),
        debounce_seconds=settings.debounce_seconds,
        poll_interval=settings.poll_interval,
    )
    watcher.install_signal_handlers()

    try:
        watcher.run()
    except WatchError as e:
        logger.error(f"File sync manager failed: {e}")
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
