"""Builders for capture formats, camera devices and monitor output."""

from __future__ import annotations

from typing import Iterable

from camera_fleet.core.formats import CameraDevice, CaptureFormat


JPEG_1080_30 = CaptureFormat("image/jpeg", 1920, 1080, 30.0)
JPEG_1080_60 = CaptureFormat("image/jpeg", 1920, 1080, 60.0)
JPEG_720_30 = CaptureFormat("image/jpeg", 1280, 720, 30.0)


def make_device(path: str, *formats: CaptureFormat, name: str = None) -> CameraDevice:
    return CameraDevice(path=path, formats=formats or (JPEG_1080_30,), name=name)


def generate_monitor_block(path: str, caps: Iterable[str], name: str = "Webcam") -> str:
    """One ``Device found:`` block as printed by gst-device-monitor-1.0."""
    caps = list(caps)
    lines = ["Device found:", "", f"    name  : {name}", "    class : Video/Source"]
    if caps:
        lines.append(f"    caps  : {caps[0]}")
        lines.extend(f"            {cap}" for cap in caps[1:])
    lines.append("    properties:")
    lines.append(f"        device.path = {path}")
    lines.append(f"    gst-launch-1.0 v4l2src device={path} ! ...")
    return "\n".join(lines) + "\n"
