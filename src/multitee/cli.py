import argparse
import os
import sys
from typing import List, Optional

from . import __version__
from .config import TeeConfig
from .diagnostics import Diagnostics
from .dispatcher import Dispatcher, Passthrough, RunContext
from .errors import FileOpenError
from .logutil import set_verbose
from .metrics import format_summary, run_metrics
from .shutdown import ShutdownController
from .sinks import SinkSet, is_glob_pattern
from .stream import InputStream


def open_sinks(paths: List[str], append: bool, diag: Diagnostics) -> SinkSet:
    """Open every usable path in order; unusable ones are reported and skipped."""
    sinks = SinkSet()
    for path in paths:
        if is_glob_pattern(path):
            diag.warn(f"Ignoring globbing path {path}")
            continue
        try:
            sinks.add_sink(path, append=append)
        except FileOpenError as exc:
            diag.warn(f"{exc}; skipping")
    return sinks


def _detach_stdout() -> None:
    # Standard output is gone (e.g. closed pipe). Point the descriptor at
    # devnull so the interpreter's final flush does not fail again.
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    except (OSError, ValueError):  # pragma: no cover - best effort
        pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multitee",
        description="Copy standard input to each FILE, and also to standard output.",
        epilog="Example: some-command | multitee -a file1.txt file2.txt",
    )
    parser.add_argument("files", nargs="*", metavar="FILE", help="Output file (repeatable, written in order)")
    parser.add_argument("-a", "--append", action="store_true", help="Append to files if they already exist")
    parser.add_argument(
        "-S",
        "--no-stdout",
        action="store_true",
        help="Do not forward standard input to standard output",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colorized diagnostics")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details (read mode, chunk counts) to stderr")
    parser.add_argument("--summary", action="store_true", help="Print a one-line run summary to stderr on exit")
    parser.add_argument(
        "--version",
        action="version",
        version=f"multitee {__version__}",
        help="Show version and exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = TeeConfig.from_args(args)
    set_verbose(cfg.verbose)
    diag = Diagnostics(color=cfg.color)

    if not args.files:
        diag.error("No files specified.")
        parser.print_usage(sys.stderr)
        return 1

    ctx = RunContext(
        config=cfg,
        sinks=SinkSet(),
        stream=InputStream(line_limit=cfg.line_limit),
        diagnostics=diag,
        passthrough=Passthrough() if cfg.passthrough else None,
    )
    with ShutdownController(ctx):
        ctx.sinks = open_sinks(args.files, cfg.append, diag)
        exit_code = Dispatcher(ctx).run()

    diag.unmute()
    if cfg.passthrough and ctx.passthrough is None:
        _detach_stdout()
    if cfg.summary:
        diag.info(format_summary(run_metrics(ctx)))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
