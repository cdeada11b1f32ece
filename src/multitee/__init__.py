"""multitee: copy standard input to several files and the console.

The version comes from the installed distribution metadata; the fallback
covers running straight from a source checkout.
"""

from __future__ import annotations

from importlib import metadata as _metadata

__all__ = ["__version__"]

_FALLBACK_VERSION = "0.1.0"  # MUST match pyproject.toml [project].version

try:  # pragma: no cover - success path covered indirectly via CLI test
	__version__ = _metadata.version("multitee")  # type: ignore[assignment]
except _metadata.PackageNotFoundError:  # pragma: no cover - fallback exercised if metadata missing
	__version__ = _FALLBACK_VERSION
