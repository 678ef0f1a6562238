"""Supervisor and HTTP control surface for a fleet of camera streaming processes."""

from __future__ import annotations

from importlib import metadata
from typing import Optional, Sequence

from .app.master import main, run as _run

try:
    __version__ = metadata.version("camera-fleet")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Convenience wrapper that runs the async master entry point."""
    return _run(list(argv) if argv is not None else None)


__all__ = ["__version__", "main", "run"]
