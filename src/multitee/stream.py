import enum
import os
import stat
import sys
from typing import BinaryIO, Optional, Tuple

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_LINE_LIMIT
from .errors import ReadError


class ReadMode(enum.Enum):
    LINE = "line"
    CHUNK = "chunk"


def is_interactive(source: BinaryIO) -> bool:
    """True when source is attached to a character device (a terminal)."""
    try:
        fd = source.fileno()
    except (AttributeError, OSError, ValueError):
        # In-memory streams have no descriptor: treat as redirected input.
        return False
    try:
        return stat.S_ISCHR(os.fstat(fd).st_mode)
    except OSError:
        return False


class InputStream:
    """Single buffered reader over standard input, consumed once.

    read_line() is used for terminals so each line is dispatched as soon as it
    is entered; read_chunk() is used for pipes, files and redirects.
    """

    def __init__(self, source: Optional[BinaryIO] = None, line_limit: int = DEFAULT_LINE_LIMIT) -> None:
        self._source = source if source is not None else sys.stdin.buffer
        self.line_limit = max(1, int(line_limit))
        self.bytes_read = 0
        self.eof = False

    @property
    def source(self) -> BinaryIO:
        return self._source

    def select_mode(self) -> ReadMode:
        return ReadMode.LINE if is_interactive(self._source) else ReadMode.CHUNK

    def read_line(self) -> Optional[Tuple[bytes, bool, bool]]:
        """Return (line, terminated, truncated), or None at end of stream.

        line excludes its newline; terminated says whether one was present, so
        a final line without a newline is reproduced as-is. truncated marks a
        segment cut at line_limit; the remainder arrives on the next call.
        """
        if self.eof:
            return None
        try:
            raw = self._source.readline(self.line_limit)
        except OSError as exc:
            raise ReadError(str(exc)) from exc
        if not raw:
            self.eof = True
            return None
        self.bytes_read += len(raw)
        if raw.endswith(b"\n"):
            return raw[:-1], True, False
        truncated = len(raw) >= self.line_limit
        return raw, False, truncated

    def read_chunk(self, max_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
        """Return up to max_size bytes; empty bytes means the stream is exhausted.

        Uses a single underlying read where the source supports it so that a
        slow pipe is forwarded as data arrives instead of per full block.
        """
        if self.eof:
            return b""
        reader = getattr(self._source, "read1", None) or self._source.read
        try:
            data = reader(max_size)
        except OSError as exc:
            raise ReadError(str(exc)) from exc
        if not data:
            self.eof = True
            return b""
        self.bytes_read += len(data)
        return data


__all__ = ["InputStream", "ReadMode", "is_interactive"]
