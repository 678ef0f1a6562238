"""Test helpers for the camera fleet test suite.

Data Generators:
    make_device - CameraDevice with sensible default formats
    generate_monitor_block - Text of one gst-device-monitor device block
"""

from .generators import (
    JPEG_1080_30,
    JPEG_1080_60,
    JPEG_720_30,
    generate_monitor_block,
    make_device,
)

__all__ = [
    "JPEG_1080_30",
    "JPEG_1080_60",
    "JPEG_720_30",
    "generate_monitor_block",
    "make_device",
]
