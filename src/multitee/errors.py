"""Exception taxonomy for a tee run.

Recoverable: FileOpenError (sink omitted), WriteError (sink deactivated).
Fatal: ReadError, PassthroughError, NoSinksAvailable.
InterruptSignal is a control event rather than a failure.
"""
from __future__ import annotations


class TeeError(Exception):
    """Base class for multitee errors."""


class FileOpenError(TeeError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot open {path}: {reason}")
        self.path = path
        self.reason = reason


class WriteError(TeeError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"write to {path} failed: {reason}")
        self.path = path
        self.reason = reason


class ReadError(TeeError):
    """Reading standard input failed for a reason other than end-of-stream."""


class PassthroughError(TeeError):
    """Writing the console copy failed; fatal to the run."""


class NoSinksAvailable(TeeError):
    def __init__(self) -> None:
        super().__init__("No valid files to save to")


class InterruptSignal(TeeError):
    """Raised out of a blocking read when an interrupt arrives."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"interrupted by signal {signum}")
        self.signum = signum


__all__ = [
    "TeeError",
    "FileOpenError",
    "WriteError",
    "ReadError",
    "PassthroughError",
    "NoSinksAvailable",
    "InterruptSignal",
]
