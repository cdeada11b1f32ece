"""Human-readable stderr diagnostics.

Messages are colorized with rich (green/yellow/red/blue by severity) unless
color is disabled. Standard output is reserved for the passthrough copy, so
everything here goes to stderr.
"""
from __future__ import annotations

import threading
from typing import IO, Optional

from rich.console import Console
from rich.text import Text

PREFIX = "[multitee]"

_STYLES = {
    "info": "bright_green",
    "warn": "bright_yellow",
    "error": "bright_red",
    "notice": "bright_blue",
}


class Diagnostics:
    def __init__(self, color: bool = True, file: Optional[IO[str]] = None) -> None:
        self.color = color
        self._console = Console(
            file=file,
            stderr=file is None,
            no_color=not color,
            highlight=False,
            soft_wrap=True,
        )
        self._muted = threading.Event()

    def _emit(self, kind: str, message: str, force: bool = False) -> None:
        if self._muted.is_set() and not force:
            return
        text = Text(f"{PREFIX} {message}", style=_STYLES[kind] if self.color else "")
        self._console.print(text)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def warn(self, message: str) -> None:
        self._emit("warn", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def notice(self, message: str, force: bool = False) -> None:
        self._emit("notice", message, force=force)

    # While muted only forced messages are printed; the interrupt path uses
    # this so its notice is not interleaved with late write diagnostics.
    def mute(self) -> None:
        self._muted.set()

    def unmute(self) -> None:
        self._muted.clear()

    @property
    def muted(self) -> bool:
        return self._muted.is_set()


__all__ = ["Diagnostics", "PREFIX"]
