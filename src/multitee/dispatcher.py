"""Main read/dispatch loop.

The Dispatcher is the only code that writes to, flushes or closes the sinks and
the passthrough writer. An interrupt only marks the RunContext as cancelled
(and, when the loop is parked in a blocking read, unblocks it by raising
InterruptSignal); the Dispatcher then runs the close sequence itself.
"""
from __future__ import annotations

import enum
import signal
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, Optional

from .config import TeeConfig
from .diagnostics import Diagnostics
from .errors import InterruptSignal, NoSinksAvailable, PassthroughError, ReadError
from .logutil import get_logger
from .sinks import SinkSet
from .stream import InputStream, ReadMode


class DispatcherState(enum.Enum):
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class Passthrough:
    """Console copy of the input. A failure here is fatal to the run."""

    def __init__(self, writer: Optional[BinaryIO] = None) -> None:
        self.writer = writer if writer is not None else sys.stdout.buffer

    def write(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            self.writer.flush()
        except (OSError, ValueError) as exc:
            raise PassthroughError(f"standard output: {exc}") from exc

    def flush(self) -> None:
        try:
            self.writer.flush()
        except (OSError, ValueError) as exc:
            raise PassthroughError(f"standard output: {exc}") from exc


@dataclass
class RunContext:
    """Everything one run shares between the Dispatcher and the ShutdownController."""

    config: TeeConfig
    sinks: SinkSet
    stream: InputStream
    diagnostics: Diagnostics
    passthrough: Optional[Passthrough] = None
    cancel: threading.Event = field(default_factory=threading.Event)
    interrupt_signum: Optional[int] = None
    # True only while the loop is parked inside a read call
    in_read: bool = False
    state: DispatcherState = DispatcherState.RUNNING
    mode: Optional[ReadMode] = None
    chunks: int = 0
    bytes_dispatched: int = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel.is_set()

    @contextmanager
    def reading(self) -> Iterator[None]:
        self.in_read = True
        try:
            # An interrupt that landed after the loop last looked at the flag
            # must still stop the next read from being issued.
            if self.cancel.is_set():
                raise InterruptSignal(self.interrupt_signum or signal.SIGINT)
            yield
        finally:
            self.in_read = False


class Dispatcher:
    def __init__(self, ctx: RunContext, mode: Optional[ReadMode] = None) -> None:
        self.ctx = ctx
        self._mode = mode
        self._log = get_logger()

    @property
    def state(self) -> DispatcherState:
        return self.ctx.state

    def run(self) -> int:
        """Pump input to the sinks until EOF, a fatal error or an interrupt.

        Returns the process exit code.
        """
        ctx = self.ctx
        diag = ctx.diagnostics
        try:
            self._require_sinks()
        except NoSinksAvailable as exc:
            diag.error(str(exc))
            ctx.state = DispatcherState.TERMINATED
            return 1

        mode = self._mode or ctx.stream.select_mode()
        ctx.mode = mode
        self._log.debug("reading standard input in %s mode", mode.value)

        exit_code = 0
        try:
            exit_code = self._pump(mode)
        except (InterruptSignal, KeyboardInterrupt):
            return self._finish_interrupted()
        if ctx.state is DispatcherState.TERMINATED:
            # Cancellation was observed between reads.
            return exit_code
        ctx.state = DispatcherState.DRAINING
        self._close()
        ctx.state = DispatcherState.TERMINATED
        return exit_code

    def _require_sinks(self) -> None:
        # Nothing is read when there is nowhere to put it.
        if self.ctx.sinks.active_count() == 0:
            raise NoSinksAvailable()

    def _pump(self, mode: ReadMode) -> int:
        ctx = self.ctx
        while True:
            if ctx.cancelled:
                return self._finish_interrupted()
            try:
                with ctx.reading():
                    chunk = self._read(mode)
            except ReadError as exc:
                ctx.diagnostics.error(f"error reading standard input: {exc}")
                return 1
            if chunk is None:
                return 0
            try:
                self._dispatch(chunk)
            except PassthroughError as exc:
                ctx.diagnostics.error(str(exc))
                # Already broken: do not try to flush it again on the way out.
                ctx.passthrough = None
                return 1

    def _read(self, mode: ReadMode) -> Optional[bytes]:
        stream = self.ctx.stream
        if mode is ReadMode.LINE:
            result = stream.read_line()
            if result is None:
                return None
            line, terminated, truncated = result
            if truncated:
                self.ctx.diagnostics.warn("line too long; forwarding it in segments")
            return line + b"\n" if terminated else line
        chunk = stream.read_chunk(self.ctx.config.chunk_size)
        return chunk or None

    def _dispatch(self, chunk: bytes) -> None:
        ctx = self.ctx
        for failure in ctx.sinks.dispatch(chunk):
            ctx.diagnostics.warn(f"{failure}; no further output to this file")
        if ctx.passthrough is not None:
            ctx.passthrough.write(chunk)
        ctx.chunks += 1
        ctx.bytes_dispatched += len(chunk)
        self._log.debug("chunk %d: %d bytes", ctx.chunks, len(chunk))

    def _finish_interrupted(self) -> int:
        """Close everything after an interrupt, bypassing DRAINING. Exit code 0."""
        ctx = self.ctx
        ctx.cancel.set()
        ctx.diagnostics.mute()
        try:
            time.sleep(max(0.0, ctx.config.shutdown_grace))
            self._close()
        finally:
            ctx.diagnostics.unmute()
        ctx.state = DispatcherState.TERMINATED
        return 0

    def _close(self) -> None:
        ctx = self.ctx
        if ctx.passthrough is not None:
            try:
                ctx.passthrough.flush()
            except PassthroughError as exc:
                self._log.warning("final flush failed: %s", exc)
        ctx.sinks.close_all()


__all__ = ["Dispatcher", "DispatcherState", "Passthrough", "RunContext"]
