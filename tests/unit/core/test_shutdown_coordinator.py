"""Unit tests for signal-driven shutdown."""

import asyncio
import signal
from unittest.mock import AsyncMock

import pytest

from camera_fleet.core.shutdown_coordinator import ShutdownCoordinator, ShutdownState
from tests.infrastructure.mocks.process_mocks import MockProcess, MockSpawner, settle


class IgnoresSigint(MockSpawner):
    """Processes ignore SIGINT but die on SIGKILL."""

    async def __call__(self, *args):
        self.calls.append(list(args))
        process = MockProcess(ignore={signal.SIGINT})
        self.processes.append(process)
        return process


class TestInitiateShutdown:

    @pytest.mark.asyncio
    async def test_clean_shutdown_exits_zero(self, make_supervisor, spawner):
        supervisor = make_supervisor()
        await supervisor.start_all()
        coordinator = ShutdownCoordinator(supervisor)

        exit_code = await coordinator.initiate_shutdown(signal.SIGTERM)

        assert exit_code == 0
        assert coordinator.state is ShutdownState.COMPLETE
        assert all(p.signals == [signal.SIGTERM] for p in spawner.processes)
        assert supervisor.processes == {}

    @pytest.mark.asyncio
    async def test_escalates_to_sigkill(self, make_supervisor):
        spawner = IgnoresSigint()
        supervisor = make_supervisor(spawn=spawner)
        await supervisor.start_all()
        coordinator = ShutdownCoordinator(supervisor)

        exit_code = await coordinator.initiate_shutdown(signal.SIGINT)

        assert exit_code == 1
        assert all(p.signals == [signal.SIGINT, signal.SIGKILL] for p in spawner.processes)
        assert supervisor.processes == {}

    @pytest.mark.asyncio
    async def test_no_processes(self, make_supervisor):
        coordinator = ShutdownCoordinator(make_supervisor([]))
        assert await coordinator.initiate_shutdown() == 0

    @pytest.mark.asyncio
    async def test_runs_once(self, make_supervisor):
        supervisor = make_supervisor()
        await supervisor.start_all()
        coordinator = ShutdownCoordinator(supervisor)
        cleanup = AsyncMock()
        coordinator.register_cleanup(cleanup)

        first, second = await asyncio.gather(
            coordinator.initiate_shutdown(signal.SIGTERM),
            coordinator.initiate_shutdown(signal.SIGINT),
        )

        assert first == second == 0
        cleanup.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_errors_do_not_abort(self, make_supervisor):
        coordinator = ShutdownCoordinator(make_supervisor([]))
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        after = AsyncMock()
        coordinator.register_cleanup(failing)
        coordinator.register_cleanup(after)

        assert await coordinator.initiate_shutdown() == 0
        after.assert_awaited_once()


class TestRequestShutdown:

    @pytest.mark.asyncio
    async def test_request_schedules_single_task(self, make_supervisor):
        supervisor = make_supervisor()
        await supervisor.start_all()
        coordinator = ShutdownCoordinator(supervisor)

        coordinator.request_shutdown(signal.SIGQUIT)
        coordinator.request_shutdown(signal.SIGTERM)

        assert await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=1.0) == 0
        assert coordinator.is_complete

    @pytest.mark.asyncio
    async def test_install_signal_handlers(self, make_supervisor):
        coordinator = ShutdownCoordinator(make_supervisor([]))
        loop = asyncio.get_running_loop()
        coordinator.install_signal_handlers(loop)
        try:
            signal.raise_signal(signal.SIGTERM)
            assert await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=1.0) == 0
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT, signal.SIGQUIT):
                loop.remove_signal_handler(sig)
        await settle()
