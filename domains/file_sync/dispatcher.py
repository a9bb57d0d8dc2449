"""
Event dispatch for registered sync processes.

Turns raw change notifications into classified FileEvents and offers each
one to every registered sync process in registration order. A failure in
one process is logged and never stops the remaining processes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from domains.file_sync.errors import ReadError, SyncError, TransformError, WriteError
from domains.file_sync.events import EventKind, FileEvent, RawChangeKind
from domains.file_sync.origin_tracker import OriginTracker
from domains.file_sync.process import FilterFn, FunctionSyncProcess, SyncProcess, TargetFn, TransformFn

_KIND_MAP: Dict[RawChangeKind, EventKind] = {
    RawChangeKind.CREATE: EventKind.CREATE,
    RawChangeKind.MODIFY: EventKind.MODIFY,
    RawChangeKind.REMOVE: EventKind.DELETE,
}


def normalize_kind(raw_kind: RawChangeKind) -> Optional[EventKind]:
    """Map a watch-mechanism change kind to an EventKind (None for other kinds)."""
    return _KIND_MAP.get(raw_kind)


class OutcomeStatus(str, Enum):
    """What a process did with one event."""

    WRITTEN = "written"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one process handling one event."""

    process_name: str
    status: OutcomeStatus
    target: Optional[Path] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


@dataclass(frozen=True)
class DispatchResult:
    """A classified event and what each applicable process did with it."""

    event: FileEvent
    outcomes: Tuple[ProcessOutcome, ...] = ()

    def outcome_for(self, process_name: str) -> Optional[ProcessOutcome]:
        for outcome in self.outcomes:
            if outcome.process_name == process_name:
                return outcome
        return None


@dataclass
class DispatchStats:
    """Counters emitted by the dispatcher for observability."""

    events: int = 0
    dropped: int = 0
    writes: int = 0
    removals: int = 0
    unchanged: int = 0
    absent: int = 0
    failures: int = 0
    writes_by_process: Dict[str, int] = field(default_factory=dict)


class Dispatcher:
    """Classifies notifications and drives every registered sync process."""

    def __init__(
        self,
        processes: Iterable[SyncProcess] = (),
        tracker: Optional[OriginTracker] = None,
        skip_unchanged_writes: bool = False,
    ):
        """
        Initialize dispatcher.

        Args:
            processes: Sync processes, in dispatch order
            tracker: Shared origin tracker (by default a fresh one whose
                mappings expire after DEFAULT_PENDING_WRITE_TTL seconds)
            skip_unchanged_writes: Skip writes that would leave the target as is
        """
        self.tracker = tracker if tracker is not None else OriginTracker()
        self.skip_unchanged_writes = skip_unchanged_writes
        self.stats = DispatchStats()
        self._pending_registrations: List[SyncProcess] = []
        self._processes: Optional[Tuple[SyncProcess, ...]] = None

        for process in processes:
            self.register_process(process)

    # Registration ---------------------------------------------------------------------

    def register_process(self, process: SyncProcess) -> Dispatcher:
        """Add a process. Only allowed before the first dispatch."""
        if self._processes is not None:
            raise RuntimeError("Sync processes cannot be registered after dispatch has started")
        if any(existing.name == process.name for existing in self._pending_registrations):
            raise ValueError(f"Sync process '{process.name}' is already registered")

        self._pending_registrations.append(process)
        logger.info(f"Registered sync process: {process.name}")
        return self

    def register_function(
        self,
        name: str,
        filter: FilterFn,
        target: TargetFn,
        transform: TransformFn,
    ) -> Dispatcher:
        """Register a process built from plain filter/target/transform callables."""
        return self.register_process(FunctionSyncProcess(name, filter, target, transform))

    @property
    def processes(self) -> Sequence[SyncProcess]:
        if self._processes is not None:
            return self._processes
        return tuple(self._pending_registrations)

    # Dispatch -------------------------------------------------------------------------

    def dispatch(self, path: Union[str, Path], raw_kind: RawChangeKind) -> Optional[DispatchResult]:
        """
        Classify one raw notification and run every process on it.

        Args:
            path: Changed path as reported by the watch mechanism
            raw_kind: Reported change kind

        Returns:
            DispatchResult, or None if the notification kind is not handled
        """
        kind = normalize_kind(raw_kind)
        if kind is None:
            self.stats.dropped += 1
            logger.debug(f"Dropped {raw_kind.value} notification: {path}")
            return None

        if self._processes is None:
            self._processes = tuple(self._pending_registrations)

        origin = self.tracker.classify_and_consume(path)
        event = FileEvent.new(path, kind).with_origin(origin)
        self.stats.events += 1
        logger.info(f"EVENT {event.describe()}")

        outcomes: List[ProcessOutcome] = []
        for process in self._processes:
            outcome = self._run_process(process, event)
            if outcome is not None:
                outcomes.append(outcome)

        return DispatchResult(event=event, outcomes=tuple(outcomes))

    def _run_process(self, process: SyncProcess, event: FileEvent) -> Optional[ProcessOutcome]:
        try:
            if not process.should_process(event):
                return None

            target = process.resolve_target(event)
            if target is not None:
                target = Path(target)
        except Exception as e:
            logger.exception(f"[{process.name}] Failed to evaluate {event.describe()}")
            self.stats.failures += 1
            return ProcessOutcome(process.name, OutcomeStatus.FAILED, None, e)

        if target is None:
            logger.debug(f"[{process.name}] No target for {event.path}")
            return None

        try:
            self.tracker.record_pending_write(target, process.name)

            if event.kind is EventKind.DELETE:
                return self._remove_target(process, event, target)
            return self._sync_content(process, event, target)
        except Exception as e:
            return self._fail(process, event, target, e)

    def _sync_content(self, process: SyncProcess, event: FileEvent, target: Path) -> ProcessOutcome:
        try:
            content = self._read_source(process, event)
            output = self._transform(process, event, content)
            if self.skip_unchanged_writes and _holds_content(target, output):
                self.tracker.release_pending_write(target, process.name)
                self.stats.unchanged += 1
                logger.debug(f"[{process.name}] {target} already up to date")
                return ProcessOutcome(process.name, OutcomeStatus.UNCHANGED, target)
            self._write_target(process, target, output)
        except SyncError as e:
            return self._fail(process, event, target, e)

        self.stats.writes += 1
        self.stats.writes_by_process[process.name] = self.stats.writes_by_process.get(process.name, 0) + 1
        logger.success(
            f"[{process.name}] {event.kind.name} {event.origin} | {event.path} -> {target}"
        )
        return ProcessOutcome(process.name, OutcomeStatus.WRITTEN, target)

    def _remove_target(self, process: SyncProcess, event: FileEvent, target: Path) -> ProcessOutcome:
        try:
            target.unlink()
        except FileNotFoundError:
            self.tracker.release_pending_write(target, process.name)
            self.stats.absent += 1
            logger.info(
                f"[{process.name}] {event.kind.name} {event.origin} | {event.path} (target already absent: {target})"
            )
            return ProcessOutcome(process.name, OutcomeStatus.ABSENT, target)
        except OSError as e:
            error = WriteError(f"Failed to remove {target}: {e}", process_name=process.name, path=target)
            return self._fail(process, event, target, error)

        self.stats.removals += 1
        logger.success(
            f"[{process.name}] {event.kind.name} {event.origin} | {event.path} (target: {target})"
        )
        return ProcessOutcome(process.name, OutcomeStatus.REMOVED, target)

    def _read_source(self, process: SyncProcess, event: FileEvent) -> bytes:
        try:
            return event.path.read_bytes()
        except OSError as e:
            raise ReadError(
                f"Failed to read {event.path}: {e}", process_name=process.name, path=event.path
            ) from e

    def _transform(self, process: SyncProcess, event: FileEvent, content: bytes) -> bytes:
        try:
            output = process.transform_content(event, content)
        except TransformError as e:
            if e.process_name is None:
                e.process_name = process.name
            if e.path is None:
                e.path = event.path
            raise
        except Exception as e:
            raise TransformError(
                f"Transform failed for {event.path}: {e}", process_name=process.name, path=event.path
            ) from e

        if not isinstance(output, (bytes, bytearray)):
            raise TransformError(
                f"Transform returned {type(output).__name__}, expected bytes",
                process_name=process.name,
                path=event.path,
            )
        return bytes(output)

    def _write_target(self, process: SyncProcess, target: Path, output: bytes) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(output)
        except OSError as e:
            raise WriteError(f"Failed to write {target}: {e}", process_name=process.name, path=target) from e

    def _fail(self, process: SyncProcess, event: FileEvent, target: Path, error: Exception) -> ProcessOutcome:
        self.tracker.release_pending_write(target, process.name)
        self.stats.failures += 1
        message = (
            f"[{process.name}] FAILED {event.kind.name} {event.origin} | {event.path} -> {target}: "
            f"{type(error).__name__}: {error}"
        )
        if isinstance(error, SyncError):
            logger.warning(message)
        else:
            logger.opt(exception=error).error(message)
        return ProcessOutcome(process.name, OutcomeStatus.FAILED, target, error)


def _holds_content(target: Path, output: bytes) -> bool:
    try:
        return target.is_file() and target.read_bytes() == output
    except OSError:
        return False
