from pathlib import Path

import pytest

from domains.file_sync.coalescer import ChangeCoalescer, merge_kinds
from domains.file_sync.events import RawChangeKind


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    "previous, current, expected",
    [
        (RawChangeKind.CREATE, RawChangeKind.MODIFY, RawChangeKind.CREATE),
        (RawChangeKind.REMOVE, RawChangeKind.CREATE, RawChangeKind.MODIFY),
        (RawChangeKind.MODIFY, RawChangeKind.REMOVE, RawChangeKind.REMOVE),
        (RawChangeKind.CREATE, RawChangeKind.REMOVE, RawChangeKind.REMOVE),
        (RawChangeKind.MODIFY, RawChangeKind.MODIFY, RawChangeKind.MODIFY),
    ],
)
def test_merge_kinds(previous, current, expected):
    assert merge_kinds(previous, current) is expected


def test_burst_for_one_write_becomes_single_create():
    clock = FakeClock()
    coalescer = ChangeCoalescer(debounce_seconds=0.5, clock=clock)
    path = Path("/watch/a/note.txt")

    coalescer.push(path, RawChangeKind.CREATE)
    coalescer.push(path, RawChangeKind.MODIFY)
    coalescer.push(path, RawChangeKind.OTHER)

    assert coalescer.pop_ready() == []
    clock.now += 0.5
    assert coalescer.pop_ready() == [(path, RawChangeKind.CREATE)]
    assert len(coalescer) == 0


def test_new_notification_restarts_quiet_period():
    clock = FakeClock()
    coalescer = ChangeCoalescer(debounce_seconds=1.0, clock=clock)
    path = Path("/watch/busy.txt")

    coalescer.push(path, RawChangeKind.MODIFY)
    clock.now += 0.8
    coalescer.push(path, RawChangeKind.MODIFY)
    clock.now += 0.8

    assert coalescer.pop_ready() == []
    assert coalescer.next_deadline() == pytest.approx(0.2)


def test_paths_are_released_in_arrival_order():
    clock = FakeClock()
    coalescer = ChangeCoalescer(debounce_seconds=0.0, clock=clock)
    first, second = Path("/w/1.txt"), Path("/w/2.txt")

    coalescer.push(first, RawChangeKind.CREATE)
    coalescer.push(second, RawChangeKind.REMOVE)
    coalescer.push(first, RawChangeKind.MODIFY)

    assert coalescer.pop_ready() == [
        (first, RawChangeKind.CREATE),
        (second, RawChangeKind.REMOVE),
    ]


def test_other_kinds_are_never_buffered():
    coalescer = ChangeCoalescer(debounce_seconds=0.0)

    coalescer.push(Path("/w/x.txt"), RawChangeKind.OTHER)

    assert len(coalescer) == 0
    assert coalescer.next_deadline() == 0.0


def test_drain_releases_everything():
    clock = FakeClock()
    coalescer = ChangeCoalescer(debounce_seconds=10.0, clock=clock)
    coalescer.push(Path("/w/x.txt"), RawChangeKind.REMOVE)
    coalescer.push(Path("/w/x.txt"), RawChangeKind.CREATE)

    assert coalescer.drain() == [(Path("/w/x.txt"), RawChangeKind.MODIFY)]
    assert coalescer.pop_ready() == []
