"""Debug and warning records for multitee.

User-facing messages go through Diagnostics; this logger carries the
low-level detail (read mode, chunk counts, close failures). It stays at
WARNING until --verbose asks for DEBUG, and leaves any handler the host
application already installed alone.
"""
from __future__ import annotations

import logging
from typing import Optional

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger("multitee")
        # Only add a handler if the application hasn't configured logging.
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(logging.WARNING)
        _LOGGER = logger
    return _LOGGER


def set_verbose(enabled: bool = True) -> None:
    get_logger().setLevel(logging.DEBUG if enabled else logging.WARNING)

__all__ = ["get_logger", "set_verbose"]
