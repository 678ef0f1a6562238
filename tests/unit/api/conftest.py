"""Pytest fixtures for API unit tests.

The routes run against a real CameraSession whose supervisor spawns
MockProcess instances, so requests exercise the full control path without
any external binary.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar
from unittest.mock import AsyncMock

import pytest
from aiohttp import web

from camera_fleet.api.server import create_app
from camera_fleet.core.session import CameraSession
from camera_fleet.core.supervisor import CameraSupervisor


T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class MockStorage:
    """Storage inspector returning fixed data."""

    def __init__(self):
        self.snapshot = AsyncMock(return_value={
            "freeStorage": [{"device": "/dev/sda1", "mount": "/", "use": "42%"}],
            "videoFiles": [],
            "folderSize": 0,
        })


async def create_started_app(supervisor: CameraSupervisor, video_dir) -> web.Application:
    """Start the supervisor and build the aiohttp app around it."""
    await supervisor.start_all()
    session = CameraSession(supervisor, video_dir, storage=MockStorage())
    return create_app(session)


@pytest.fixture
def app_factory(make_supervisor, settings):
    """Coroutine factory: ``app = await app_factory(**supervisor_kwargs)``."""

    async def factory(**kwargs) -> web.Application:
        return await create_started_app(make_supervisor(**kwargs), settings.video_dir)

    return factory
