"""Unit test fixtures for the supervisor and session layers.

Everything here runs without spawning real processes: camera processes are
MockProcess instances handed out by a MockSpawner, and discovery returns a
fixed device list.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Callable, List

import pytest

from camera_fleet.core.formats import CameraDevice
from camera_fleet.core.settings import Settings
from camera_fleet.core.supervisor import CameraSupervisor
from tests.infrastructure.helpers import JPEG_1080_30, JPEG_1080_60, make_device
from tests.infrastructure.mocks.process_mocks import MockSpawner


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a short kill timeout and a temporary video directory."""
    video_dir = tmp_path / "videos"
    video_dir.mkdir()
    return Settings(video_dir=video_dir, kill_timeout=0.05)


@pytest.fixture
def spawner() -> MockSpawner:
    return MockSpawner()


@pytest.fixture
def devices() -> List[CameraDevice]:
    return [
        make_device("/dev/video0", JPEG_1080_30, JPEG_1080_60),
        make_device("/dev/video2", JPEG_1080_30),
    ]


@pytest.fixture
def make_supervisor(settings: Settings, spawner: MockSpawner, devices: List[CameraDevice]) -> Callable[..., CameraSupervisor]:
    """Factory for supervisors wired to the mock spawner and a fixed device list."""

    def factory(device_list=None, spawn=None) -> CameraSupervisor:
        found = devices if device_list is None else device_list

        async def discover():
            return list(found)

        return CameraSupervisor(settings, discover=discover, spawn=spawn or spawner)

    return factory


@pytest.fixture
def fixed_clock() -> Callable[[], datetime.datetime]:
    """Clock that advances one second per call."""
    start = datetime.datetime(2024, 3, 7, 9, 5, 2)
    calls = {"n": 0}

    def clock() -> datetime.datetime:
        value = start + datetime.timedelta(seconds=calls["n"])
        calls["n"] += 1
        return value

    return clock
