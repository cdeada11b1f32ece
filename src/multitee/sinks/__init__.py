"""Output sinks.

A Sink owns one destination file (raw handle plus a buffered writer over it).
SinkSet fans each chunk out to every active sink in insertion order; a sink
that fails a write is deactivated and the rest keep receiving data.
"""
from __future__ import annotations

import io
import re
from typing import Iterator, List

from ..errors import FileOpenError, WriteError
from ..logutil import get_logger

_GLOB_MAGIC = re.compile(r"[*?[]")


def is_glob_pattern(path: str) -> bool:
    return _GLOB_MAGIC.search(path) is not None


class Sink:
    """One output destination.

    Active until the first failed write or an explicit close; never reactivated.
    """

    def __init__(self, path: str, handle: io.FileIO) -> None:
        self._path = path
        self.handle = handle
        self.writer = io.BufferedWriter(handle)
        self.active = True
        self.failed = False
        self.closed = False

    @property
    def path(self) -> str:
        return self._path

    @classmethod
    def open(cls, path: str, append: bool = False) -> "Sink":
        # "ab" creates or appends, "wb" creates or truncates; both in one open call.
        mode = "ab" if append else "wb"
        try:
            handle = open(path, mode, buffering=0)
        except OSError as exc:
            raise FileOpenError(path, exc.strerror or str(exc)) from exc
        return cls(path, handle)

    def write(self, data: bytes) -> None:
        """Write and flush; on failure deactivate and raise WriteError.

        The handle stays open after a failure; it is released by close().
        """
        try:
            self.writer.write(data)
            self.writer.flush()
        except (OSError, ValueError) as exc:
            self.active = False
            self.failed = True
            reason = getattr(exc, "strerror", None) or str(exc)
            raise WriteError(self._path, reason) from exc

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.active = False
        # A failed sink keeps the chunk that failed in its buffer; it must never
        # reach the file, so only healthy sinks are flushed.
        if not self.failed:
            try:
                self.writer.flush()
            except (OSError, ValueError) as exc:
                get_logger().warning("flush of %s failed on close: %s", self._path, exc)
        # Closing the raw handle also retires the writer and whatever it still buffers.
        try:
            self.handle.close()
        except OSError as exc:
            get_logger().warning("close of %s failed: %s", self._path, exc)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        state = "closed" if self.closed else ("active" if self.active else "inactive")
        return f"Sink({self._path!r}, {state})"


class SinkSet:
    def __init__(self) -> None:
        self._sinks: List[Sink] = []
        self._closed = False

    def __iter__(self) -> Iterator[Sink]:
        return iter(self._sinks)

    def __len__(self) -> int:
        return len(self._sinks)

    def add_sink(self, path: str, append: bool = False) -> Sink:
        """Open path and append it to the set.

        Glob-looking paths are refused before any open attempt since no
        expansion is performed.
        """
        if is_glob_pattern(path):
            raise FileOpenError(path, "looks like a glob pattern; paths are not expanded")
        sink = Sink.open(path, append=append)
        self._sinks.append(sink)
        get_logger().debug("opened sink %s (append=%s)", path, append)
        return sink

    def dispatch(self, data: bytes) -> List[WriteError]:
        """Write data to every active sink in order.

        Returns the write errors raised during this call; each failing sink has
        already been deactivated.
        """
        failures: List[WriteError] = []
        for sink in self._sinks:
            if not sink.active:
                continue
            try:
                sink.write(data)
            except WriteError as exc:
                failures.append(exc)
        return failures

    def close_all(self) -> None:
        if self._closed:
            return
        self._closed = True
        for sink in self._sinks:
            sink.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def active_count(self) -> int:
        return sum(1 for s in self._sinks if s.active)


__all__ = ["Sink", "SinkSet", "is_glob_pattern"]
