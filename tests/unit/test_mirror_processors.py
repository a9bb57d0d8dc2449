from pathlib import Path

from domains.file_sync.events import EventKind, EventOrigin, FileEvent
from domains.file_sync.processors.mirror import BidirectionalSync, DirectoryMirror


def test_mirror_maps_relative_path_into_target(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b")
    event = FileEvent.new(tmp_path / "a" / "docs" / "note.txt", EventKind.CREATE)

    assert mirror.should_process(event)
    assert mirror.resolve_target(event) == mirror.target_root / "docs" / "note.txt"
    assert mirror.transform_content(event, b"payload") == b"payload"


def test_mirror_ignores_its_own_writes(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b")
    event = FileEvent(tmp_path / "a" / "note.txt", EventKind.MODIFY, EventOrigin.internal("A->B"))

    assert not mirror.should_process(event)


def test_mirror_accepts_writes_of_other_processes(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b")
    event = FileEvent(tmp_path / "a" / "note.txt", EventKind.MODIFY, EventOrigin.internal("C->A"))

    assert mirror.should_process(event)


def test_mirror_compares_whole_path_components(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b")
    event = FileEvent.new(tmp_path / "ab" / "note.txt", EventKind.CREATE)

    assert not mirror.should_process(event)
    assert mirror.resolve_target(event) is None


def test_mirror_filters_by_suffix(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b", suffixes=[".txt"])

    assert mirror.should_process(FileEvent.new(tmp_path / "a" / "x.txt", EventKind.CREATE))
    assert not mirror.should_process(FileEvent.new(tmp_path / "a" / "x.md", EventKind.CREATE))


def test_mirror_ignores_the_root_itself(tmp_path):
    mirror = DirectoryMirror("A->B", tmp_path / "a", tmp_path / "b")

    assert not mirror.should_process(FileEvent.new(tmp_path / "a", EventKind.MODIFY))


def test_bidirectional_targets_the_opposite_root(tmp_path):
    sync = BidirectionalSync("A<->C", tmp_path / "a", tmp_path / "c")

    left = FileEvent.new(tmp_path / "a" / "x.txt", EventKind.CREATE)
    right = FileEvent.new(tmp_path / "c" / "sub" / "y.txt", EventKind.MODIFY)

    assert sync.resolve_target(left) == sync.right_root / "x.txt"
    assert sync.resolve_target(right) == sync.left_root / "sub" / "y.txt"


def test_bidirectional_skips_own_echo_and_unrelated_paths(tmp_path):
    sync = BidirectionalSync("A<->C", tmp_path / "a", tmp_path / "c")

    echo = FileEvent(tmp_path / "c" / "x.txt", EventKind.CREATE, EventOrigin.internal("A<->C"))
    elsewhere = FileEvent.new(tmp_path / "b" / "x.txt", EventKind.CREATE)

    assert not sync.should_process(echo)
    assert not sync.should_process(elsewhere)


def test_relative_roots_match_absolute_events(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    mirror = DirectoryMirror("A->B", Path("a"), Path("b"))
    event = FileEvent.new(tmp_path.resolve() / "a" / "x.txt", EventKind.CREATE)

    assert mirror.should_process(event)
    assert mirror.resolve_target(event) == tmp_path.resolve() / "b" / "x.txt"
