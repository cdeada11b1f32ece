"""Counters for a run.

A dependency-free snapshot of a RunContext, rendered as the one-line
`--summary` report. Does not mutate the context.
"""
from __future__ import annotations

from typing import Any, Dict

from .dispatcher import RunContext


def run_metrics(ctx: RunContext) -> Dict[str, Any]:
    sinks = list(ctx.sinks)
    return {
        "state": ctx.state.value,
        "mode": ctx.mode.value if ctx.mode is not None else None,
        "chunks": ctx.chunks,
        "bytes": ctx.bytes_dispatched,
        "bytes_read": ctx.stream.bytes_read,
        "sinks": len(sinks),
        "failed": [s.path for s in sinks if s.failed],
        "interrupted": ctx.cancelled,
    }


def format_summary(metrics: Dict[str, Any]) -> str:
    return (
        f"summary: state={metrics['state']} mode={metrics['mode'] or '-'} "
        f"chunks={metrics['chunks']} bytes={metrics['bytes']} bytes_read={metrics['bytes_read']} "
        f"sinks={metrics['sinks']} failed={len(metrics['failed'])} "
        f"interrupted={'yes' if metrics['interrupted'] else 'no'}"
    )

__all__ = ["run_metrics", "format_summary"]
