"""Capture formats resolved from parsed caps, and best-format selection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, List, Optional, Sequence

from .capabilities import Atom, Cap, DeviceRecord, Range


@dataclass(frozen=True, slots=True)
class CaptureFormat:
    pixel_format: str
    width: int
    height: int
    fps: float

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True, slots=True)
class CameraDevice:
    path: str
    formats: tuple[CaptureFormat, ...]
    name: Optional[str] = None


def _to_float(text: Optional[str]) -> float:
    if text is None:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def _ratio(numerator: Optional[str], denominator: Optional[str]) -> float:
    num = _to_float(numerator)
    den = _to_float(denominator)
    if math.isnan(num) or math.isnan(den) or den == 0:
        return math.nan
    return num / den


def _dimension(value) -> Optional[int]:
    if not isinstance(value, Atom):
        return None
    try:
        number = int(value.value)
    except ValueError:
        return None
    return number if number > 0 else None


def frame_rate(cap: Cap) -> float:
    """Frame rate of a cap, or NaN when it can't be derived.

    A ``fraction`` atom ``num/den`` gives num/den; a range gives max/maxdenom.
    """
    value = cap.parameters.get("framerate")
    if isinstance(value, Atom):
        parts = value.value.split("/")
        if len(parts) != 2:
            return math.nan
        return _ratio(parts[0], parts[1])
    if isinstance(value, Range):
        return _ratio(value.max, value.maxdenom)
    return math.nan


def resolve_format(cap: Cap) -> Optional[CaptureFormat]:
    """Turn a cap into a usable CaptureFormat, or None if any field is missing."""
    if not cap.type:
        return None
    width = _dimension(cap.parameters.get("width"))
    if width is None:
        return None
    height = _dimension(cap.parameters.get("height"))
    if height is None:
        return None
    fps = frame_rate(cap)
    if not math.isfinite(fps) or fps <= 0:
        return None
    return CaptureFormat(pixel_format=cap.type, width=width, height=height, fps=fps)


def resolve_devices(records: Iterable[DeviceRecord]) -> List[CameraDevice]:
    """Keep devices that have a path and at least one usable format."""
    devices: List[CameraDevice] = []
    for record in records:
        path = record.device_path
        if path is None:
            continue
        formats = tuple(fmt for fmt in (resolve_format(cap) for cap in record.caps) if fmt is not None)
        if not formats:
            continue
        devices.append(CameraDevice(path=path, formats=formats, name=record.name))
    return devices


def select_format(
    formats: Sequence[CaptureFormat],
    pixel_format: str,
    width: int,
    height: int,
) -> Optional[CaptureFormat]:
    """Highest frame rate format matching pixel format and resolution.

    Pixel formats compare case-insensitively. Ties keep the earliest entry.
    Returns None when nothing matches.
    """
    wanted = pixel_format.casefold()
    candidates = [
        fmt for fmt in formats
        if fmt.pixel_format.casefold() == wanted and fmt.width == width and fmt.height == height
    ]
    if not candidates:
        return None
    return reduce(lambda best, fmt: fmt if fmt.fps > best.fps else best, candidates)


def format_fps(fps: float) -> str:
    """Render a frame rate for the command line (``30`` rather than ``30.0``)."""
    return str(int(fps)) if float(fps).is_integer() else repr(float(fps))


__all__ = [
    "CameraDevice",
    "CaptureFormat",
    "format_fps",
    "frame_rate",
    "resolve_devices",
    "resolve_format",
    "select_format",
]
