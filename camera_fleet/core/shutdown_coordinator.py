"""
Shutdown Coordinator - Single point of control for signal-driven shutdown.

A termination signal first forwards the same signal to every camera process.
If any of them fails to die, the coordinator escalates to SIGKILL and the
program exits non-zero once that second round has settled.
"""

import asyncio
import signal
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

from .logging_utils import get_module_logger
from .supervisor import CameraSupervisor, SignalLike, signal_name

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGQUIT)
FORCE_SIGNAL = signal.SIGKILL


class ShutdownState(Enum):
    """States of the shutdown process."""
    RUNNING = "running"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class ShutdownCoordinator:
    """
    Coordinates shutdown of the camera processes and the HTTP server.

    Shutdown sequence:
    1. A signal (or caller) triggers initiate_shutdown()
    2. Camera processes receive the same signal and are awaited
    3. On any failure, SIGKILL is sent to the survivors and awaited
    4. Cleanup callbacks run (e.g. stopping the API server)
    5. The exit status is published and waiters are released
    """

    def __init__(self, supervisor: CameraSupervisor):
        self.logger = get_module_logger("ShutdownCoordinator")
        self.supervisor = supervisor
        self._state = ShutdownState.RUNNING
        self._done = asyncio.Event()
        self._cleanup_callbacks: list[Callable[[], Awaitable[None]]] = []
        self._task: Optional[asyncio.Task] = None
        self.exit_code: Optional[int] = None

    @property
    def state(self) -> ShutdownState:
        return self._state

    @property
    def is_shutting_down(self) -> bool:
        return self._state is ShutdownState.IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self._state is ShutdownState.COMPLETE

    def register_cleanup(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Register an async callback run after the camera processes are gone."""
        self._cleanup_callbacks.append(callback)

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in TERMINATION_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except (NotImplementedError, RuntimeError):
                pass  # Windows doesn't support add_signal_handler

    def request_shutdown(self, sig: SignalLike = signal.SIGTERM) -> None:
        """Signal-handler entry point; schedules initiate_shutdown once."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self.initiate_shutdown(sig), name="shutdown"
            )

    async def initiate_shutdown(self, sig: SignalLike = signal.SIGTERM) -> int:
        """
        Kill all camera processes with ``sig``, escalating to SIGKILL.

        Only the first call does the work; later calls wait for it and
        return the same exit status.
        """
        if self._state is not ShutdownState.RUNNING:
            await self._done.wait()
            return self.exit_code

        self._state = ShutdownState.IN_PROGRESS
        start = time.monotonic()
        self.logger.info("Shutdown initiated by %s", signal_name(sig))

        failures = await self.supervisor.kill_all(sig)
        if failures:
            self.logger.warning(
                "%d process(es) ignored %s, escalating to %s",
                len(failures), signal_name(sig), FORCE_SIGNAL.name,
            )
            remaining = await self.supervisor.kill_all(FORCE_SIGNAL)
            if remaining:
                self.logger.error("%d process(es) survived %s", len(remaining), FORCE_SIGNAL.name)
            self.exit_code = 1
        else:
            self.exit_code = 0

        for callback in self._cleanup_callbacks:
            try:
                await callback()
            except Exception as e:
                self.logger.error("Error in cleanup callback %s: %s",
                                  getattr(callback, "__name__", callback), e, exc_info=True)

        self._state = ShutdownState.COMPLETE
        self._done.set()
        self.logger.info("Shutdown complete in %.3fs (exit code %d)", time.monotonic() - start, self.exit_code)
        return self.exit_code

    async def wait_for_shutdown(self) -> int:
        """Block until shutdown completes and return the exit status."""
        await self._done.wait()
        return self.exit_code


__all__ = ["FORCE_SIGNAL", "ShutdownCoordinator", "ShutdownState", "TERMINATION_SIGNALS"]
