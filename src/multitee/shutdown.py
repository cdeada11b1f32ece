"""Interrupt handling.

The controller never touches sinks or the passthrough writer. On an interrupt it
records the request on the RunContext, prints a single notice while other
diagnostics are muted, and, if the main loop is blocked reading input, raises
InterruptSignal so the read returns. The Dispatcher performs the close.
"""
from __future__ import annotations

import signal
import threading
from types import FrameType
from typing import Any, Dict, Optional, Tuple

from .dispatcher import RunContext
from .errors import InterruptSignal
from .logutil import get_logger

_DEFAULT_SIGNALS: Tuple[int, ...] = tuple(
    s for s in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)) if s is not None
)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class ShutdownController:
    def __init__(self, ctx: RunContext, signals: Tuple[int, ...] = _DEFAULT_SIGNALS) -> None:
        self.ctx = ctx
        self.signals = signals
        self._previous: Dict[int, Any] = {}

    def install(self) -> "ShutdownController":
        # signal.signal only works from the main thread of the main interpreter.
        if threading.current_thread() is not threading.main_thread():
            get_logger().debug("not on the main thread; interrupt handlers not installed")
            return self
        for signum in self.signals:
            try:
                self._previous[signum] = signal.signal(signum, self._handle)
            except (OSError, ValueError) as exc:  # pragma: no cover - platform dependent
                get_logger().debug("cannot handle signal %s: %s", signum, exc)
        return self

    def restore(self) -> None:
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (OSError, ValueError, TypeError):  # pragma: no cover
                pass
        self._previous.clear()

    def __enter__(self) -> "ShutdownController":
        return self.install()

    def __exit__(self, *exc_info: Any) -> None:
        self.restore()

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:  # pragma: no cover - exercised via subprocess
        self.notify(signum)

    def notify(self, signum: int = signal.SIGINT) -> None:
        """Request shutdown. Safe to call from any thread; repeat calls are ignored.

        Raises InterruptSignal only when called on the main thread while the
        Dispatcher is parked in a read.
        """
        ctx = self.ctx
        if ctx.cancel.is_set():
            return
        ctx.interrupt_signum = signum
        ctx.diagnostics.mute()
        ctx.cancel.set()
        ctx.diagnostics.notice(f"got signal {_signal_name(signum)}", force=True)
        if ctx.in_read and threading.current_thread() is threading.main_thread():
            raise InterruptSignal(signum)


__all__ = ["ShutdownController"]
