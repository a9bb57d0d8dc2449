import threading
from pathlib import Path

from domains.file_sync.events import EventOrigin
from domains.file_sync.origin_tracker import DEFAULT_PENDING_WRITE_TTL, OriginTracker


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_unknown_path_is_external(tmp_path):
    tracker = OriginTracker()

    assert tracker.classify_and_consume(tmp_path / "note.txt") == EventOrigin.external()


def test_pending_write_is_consumed_once(tmp_path):
    tracker = OriginTracker()
    target = tmp_path / "b" / "note.txt"

    tracker.record_pending_write(target, "A->B")

    assert tracker.classify_and_consume(target) == EventOrigin.internal("A->B")
    assert tracker.classify_and_consume(target).is_external
    assert len(tracker) == 0


def test_mappings_for_same_path_are_consumed_fifo(tmp_path):
    tracker = OriginTracker()
    target = tmp_path / "shared.txt"

    tracker.record_pending_write(target, "first")
    tracker.record_pending_write(target, "second")

    assert tracker.classify_and_consume(target).process_name == "first"
    assert tracker.classify_and_consume(target).process_name == "second"
    assert tracker.classify_and_consume(target).is_external


def test_consuming_one_path_keeps_other_paths(tmp_path):
    tracker = OriginTracker()
    tracker.record_pending_write(tmp_path / "one.txt", "p1")
    tracker.record_pending_write(tmp_path / "two.txt", "p2")

    tracker.classify_and_consume(tmp_path / "one.txt")

    assert tracker.pending_count() == 1
    assert tracker.classify_and_consume(tmp_path / "two.txt").process_name == "p2"


def test_relative_registration_matches_absolute_notification(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    tracker = OriginTracker()

    tracker.record_pending_write(Path("_mara/b/note.txt"), "A->B")

    origin = tracker.classify_and_consume(tmp_path / "_mara" / "b" / "note.txt")
    assert origin == EventOrigin.internal("A->B")


def test_release_removes_latest_mapping_of_that_process(tmp_path):
    tracker = OriginTracker()
    target = tmp_path / "x.txt"
    tracker.record_pending_write(target, "p1")
    tracker.record_pending_write(target, "p2")

    assert tracker.release_pending_write(target, "p2") is True
    assert tracker.release_pending_write(target, "p2") is False

    assert tracker.classify_and_consume(target).process_name == "p1"
    assert tracker.classify_and_consume(target).is_external


def test_expired_mapping_no_longer_matches(tmp_path):
    clock = FakeClock()
    tracker = OriginTracker(ttl=5.0, clock=clock)
    target = tmp_path / "x.txt"

    tracker.record_pending_write(target, "p1")
    clock.now += 10.0

    assert tracker.classify_and_consume(target).is_external
    assert len(tracker) == 0


def test_mapping_within_ttl_still_matches(tmp_path):
    clock = FakeClock()
    tracker = OriginTracker(ttl=5.0, clock=clock)
    target = tmp_path / "x.txt"

    tracker.record_pending_write(target, "p1")
    clock.now += 4.0

    assert tracker.classify_and_consume(target).process_name == "p1"


def test_concurrent_record_and_classify_lose_nothing(tmp_path):
    tracker = OriginTracker()
    target = tmp_path / "busy.txt"
    per_thread = 200

    def record(name):
        for _ in range(per_thread):
            tracker.record_pending_write(target, name)

    threads = [threading.Thread(target=record, args=(f"p{i}",)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    internal = 0
    while not tracker.classify_and_consume(target).is_external:
        internal += 1

    assert internal == 4 * per_thread


def test_default_tracker_expires_forgotten_mappings(tmp_path):
    clock = FakeClock()
    tracker = OriginTracker(clock=clock)
    tracker.record_pending_write(tmp_path / "outside-every-root.txt", "p1")

    clock.now += DEFAULT_PENDING_WRITE_TTL + 1
    tracker.classify_and_consume(tmp_path / "other.txt")

    assert len(tracker) == 0


def test_unresolvable_paths_fall_back_to_the_path_as_given(monkeypatch):
    def fail(self, *args, **kwargs):
        raise OSError("working directory is gone")

    monkeypatch.setattr(Path, "resolve", fail)
    monkeypatch.setattr(Path, "absolute", fail)
    tracker = OriginTracker()

    tracker.record_pending_write("b/note.txt", "A->B")

    assert tracker.classify_and_consume("elsewhere/note.txt").is_external
    assert tracker.classify_and_consume(Path("b/note.txt")) == EventOrigin.internal("A->B")
    assert tracker.classify_and_consume("b/note.txt").is_external


def test_release_survives_unresolvable_paths(monkeypatch):
    def fail(self, *args, **kwargs):
        raise OSError("working directory is gone")

    monkeypatch.setattr(Path, "resolve", fail)
    monkeypatch.setattr(Path, "absolute", fail)
    tracker = OriginTracker()
    tracker.record_pending_write("b/note.txt", "A->B")

    assert tracker.release_pending_write("b/note.txt", "A->B") is True
    assert len(tracker) == 0
