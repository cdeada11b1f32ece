import errno
import io
import os
from pathlib import Path

import pytest

from multitee.errors import FileOpenError, WriteError
from multitee.sinks import Sink, SinkSet, is_glob_pattern


class FlakyWriter:
    """Delegates to a real writer but fails the Nth write call."""

    def __init__(self, inner, fail_at: int) -> None:
        self.inner = inner
        self.fail_at = fail_at
        self.calls = 0

    def write(self, data):
        self.calls += 1
        if self.calls == self.fail_at:
            raise OSError(errno.EIO, "Input/output error")
        return self.inner.write(data)

    def flush(self):
        self.inner.flush()


def test_open_creates_missing_file(tmp_path: Path):
    target = tmp_path / "new.txt"
    sink = Sink.open(str(target))
    sink.write(b"abc")
    sink.close()
    assert target.read_bytes() == b"abc"


def test_open_truncates_existing_without_append(tmp_path: Path):
    target = tmp_path / "old.txt"
    target.write_bytes(b"previous content")
    sink = Sink.open(str(target), append=False)
    assert target.read_bytes() == b""
    sink.write(b"Y")
    sink.close()
    assert target.read_bytes() == b"Y"


def test_open_appends_existing_with_append(tmp_path: Path):
    target = tmp_path / "old.txt"
    target.write_bytes(b"X")
    sink = Sink.open(str(target), append=True)
    sink.write(b"Y")
    sink.close()
    assert target.read_bytes() == b"XY"


def test_open_directory_raises(tmp_path: Path):
    with pytest.raises(FileOpenError) as info:
        Sink.open(str(tmp_path))
    assert info.value.path == str(tmp_path)


def test_open_missing_parent_raises(tmp_path: Path):
    with pytest.raises(FileOpenError):
        Sink.open(str(tmp_path / "nope" / "out.txt"))


def test_write_flushes_every_call(tmp_path: Path):
    target = tmp_path / "out.txt"
    sink = Sink.open(str(target))
    sink.write(b"first")
    # Visible on disk before close
    assert target.read_bytes() == b"first"
    sink.close()


def test_failed_write_deactivates_but_keeps_handle(tmp_path: Path):
    target = tmp_path / "out.txt"
    sink = Sink.open(str(target))
    sink.writer = FlakyWriter(sink.writer, fail_at=2)
    sink.write(b"one")
    with pytest.raises(WriteError):
        sink.write(b"two")
    assert not sink.active
    assert sink.failed
    assert not sink.handle.closed
    sink.close()
    assert sink.handle.closed
    assert target.read_bytes() == b"one"


def test_close_twice_is_harmless(tmp_path: Path):
    sink = Sink.open(str(tmp_path / "out.txt"))
    sink.close()
    sink.close()
    assert sink.closed and not sink.active


@pytest.mark.parametrize("path,expected", [
    ("logs/*.txt", True),
    ("file?.log", True),
    ("out[12].txt", True),
    ("plain.txt", False),
    ("dir/with space.log", False),
])
def test_is_glob_pattern(path, expected):
    assert is_glob_pattern(path) is expected


def test_add_sink_rejects_glob_before_opening(tmp_path: Path):
    sinks = SinkSet()
    pattern = tmp_path / "out*.txt"
    with pytest.raises(FileOpenError):
        sinks.add_sink(str(pattern))
    assert len(sinks) == 0
    assert not pattern.exists()


def test_dispatch_in_insertion_order_and_isolates_failures(tmp_path: Path):
    paths = [tmp_path / name for name in ("a.txt", "b.txt", "c.txt")]
    sinks = SinkSet()
    for p in paths:
        sinks.add_sink(str(p))
    assert [s.path for s in sinks] == [str(p) for p in paths]

    middle = list(sinks)[1]
    middle.writer = FlakyWriter(middle.writer, fail_at=2)

    assert sinks.dispatch(b"chunk1 ") == []
    failures = sinks.dispatch(b"chunk2 ")
    assert [f.path for f in failures] == [str(paths[1])]
    assert sinks.dispatch(b"chunk3") == []
    assert sinks.active_count() == 2

    sinks.close_all()
    assert paths[0].read_bytes() == b"chunk1 chunk2 chunk3"
    assert paths[1].read_bytes() == b"chunk1 "
    assert paths[2].read_bytes() == b"chunk1 chunk2 chunk3"


def test_close_all_releases_inactive_sinks(tmp_path: Path):
    sinks = SinkSet()
    a = sinks.add_sink(str(tmp_path / "a.txt"))
    b = sinks.add_sink(str(tmp_path / "b.txt"))
    b.writer = FlakyWriter(b.writer, fail_at=1)
    sinks.dispatch(b"data")
    assert not b.active
    sinks.close_all()
    assert a.handle.closed and b.handle.closed
    assert sinks.closed
    assert sinks.active_count() == 0


@pytest.mark.skipif(not os.path.exists("/dev/full"), reason="needs /dev/full")
def test_real_write_failure_on_device_full(tmp_path: Path):
    sinks = SinkSet()
    good = tmp_path / "good.txt"
    sinks.add_sink("/dev/full")
    sinks.add_sink(str(good))
    failures = sinks.dispatch(b"payload")
    assert len(failures) == 1 and failures[0].path == "/dev/full"
    sinks.dispatch(b" more")
    sinks.close_all()
    assert good.read_bytes() == b"payload more"


class FailingFileIO(io.FileIO):
    """Raw file whose Nth write fails once with ENOSPC, then works again."""

    def __init__(self, path, mode, fail_at: int) -> None:
        super().__init__(path, mode)
        self.fail_at = fail_at
        self.calls = 0

    def write(self, data):
        self.calls += 1
        if self.calls == self.fail_at:
            raise OSError(errno.ENOSPC, "No space left on device")
        return super().write(data)


def test_chunk_that_failed_never_reaches_the_file(tmp_path: Path, monkeypatch):
    target = tmp_path / "out.txt"
    monkeypatch.setattr(
        "multitee.sinks.open",
        lambda path, mode, buffering=-1: FailingFileIO(path, mode, fail_at=2),
        raising=False,
    )
    sinks = SinkSet()
    sink = sinks.add_sink(str(target))
    assert isinstance(sink.handle, FailingFileIO)

    assert sinks.dispatch(b"chunk1 ") == []
    failures = sinks.dispatch(b"chunk2 ")
    assert [f.path for f in failures] == [str(target)]
    # The raw file would accept data again, but the sink stays off.
    assert sinks.dispatch(b"chunk3") == []

    sinks.close_all()
    assert sink.handle.closed
    assert target.read_bytes() == b"chunk1 "
