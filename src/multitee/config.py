from dataclasses import dataclass
from typing import Any

# Block size used when standard input is a pipe, file or redirect
DEFAULT_CHUNK_SIZE = 2048
# Longest line handed out in one piece when reading an interactive terminal
DEFAULT_LINE_LIMIT = 4096


@dataclass
class TeeConfig:
    # Extend existing files instead of truncating them
    append: bool = False
    # Mirror input to standard output
    passthrough: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    line_limit: int = DEFAULT_LINE_LIMIT
    # Seconds to wait after an interrupt before the final flush/close
    shutdown_grace: float = 0.1
    # Diagnostics
    color: bool = True
    verbose: bool = False
    summary: bool = False

    @classmethod
    def from_args(cls, args: Any) -> "TeeConfig":
        cfg = cls()
        cfg.append = bool(getattr(args, "append", False))
        cfg.passthrough = not bool(getattr(args, "no_stdout", False))
        cfg.color = not bool(getattr(args, "no_color", False))
        cfg.verbose = bool(getattr(args, "verbose", False))
        cfg.summary = bool(getattr(args, "summary", False))
        return cfg
