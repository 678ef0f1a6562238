"""Process supervisor owning the live set of camera streaming processes."""

from __future__ import annotations

import asyncio
import signal
import subprocess
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .asyncio_utils import create_logged_task
from .camera_process import CameraProcess, TerminalEvent
from .discovery import discover_cameras
from .errors import KillError, KillFailure, KillTimeout
from .formats import CameraDevice, CaptureFormat, format_fps, select_format
from .logging_utils import get_module_logger
from .settings import Settings

logger = get_module_logger("CameraSupervisor")

DiscoverFunc = Callable[[], Awaitable[List[CameraDevice]]]
SpawnFunc = Callable[..., Awaitable[Any]]
SignalLike = Union[signal.Signals, int]

GRACEFUL_SIGNAL = signal.SIGINT


async def spawn_subprocess(*args: str) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )


def signal_name(sig: SignalLike) -> str:
    try:
        return signal.Signals(sig).name
    except ValueError:
        return str(sig)


class CameraSupervisor:
    """Spawns one streaming process per camera and tracks them by pid.

    ``processes`` is the authoritative live map. Entries are removed exactly
    once, by whichever terminal event (exit, error, close, disconnect or a
    completed kill) arrives first.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        discover: Optional[DiscoverFunc] = None,
        spawn: Optional[SpawnFunc] = None,
    ):
        self.settings = settings
        self.processes: Dict[int, CameraProcess] = {}
        # Keyed by pid, so names don't follow a camera across restarts.
        self.camera_names: Dict[int, str] = {}

        self._discover = discover or (lambda: discover_cameras(settings.discovery_command))
        self._spawn = spawn or spawn_subprocess
        self._watch_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Start

    def build_args(self, device: CameraDevice, fmt: CaptureFormat) -> List[str]:
        return [
            self.settings.stream_binary,
            "-c", device.path,
            "-f", format_fps(fmt.fps),
            "-r", fmt.resolution,
        ]

    async def start_all(self) -> List[CameraProcess]:
        """Discover cameras and spawn a streaming process for each usable one."""
        devices = await self._discover()
        started: List[CameraProcess] = []

        for index, device in enumerate(devices):
            port = self.settings.base_port + index
            fmt = select_format(
                device.formats,
                self.settings.pixel_format,
                self.settings.width,
                self.settings.height,
            )
            if fmt is None:
                logger.warning(
                    "No %s %dx%d format for %s, skipping",
                    self.settings.pixel_format,
                    self.settings.width,
                    self.settings.height,
                    device.path,
                )
                continue

            args = self.build_args(device, fmt)
            try:
                process = await self._spawn(*args)
            except (OSError, ValueError, subprocess.SubprocessError) as e:
                logger.error("Failed to start camera %s: %s", device.path, e)
                continue

            camera = CameraProcess(port, process, args, device_path=device.path)
            self._register(camera)
            started.append(camera)
            logger.info("Started %s on port %d (pid %s, %s @ %s fps)",
                        device.path, port, camera.pid, fmt.resolution, format_fps(fmt.fps))

        return started

    def _register(self, camera: CameraProcess) -> None:
        self.processes[camera.pid] = camera
        create_logged_task(
            self._watch(camera),
            logger=logger,
            context=f"watch-{camera.pid}",
            pending=self._watch_tasks,
        )

    async def _watch(self, camera: CameraProcess) -> None:
        pid = camera.pid
        readers = [
            asyncio.create_task(self._pump(camera, camera.process.stdout, is_stderr=False)),
            asyncio.create_task(self._pump(camera, camera.process.stderr, is_stderr=True)),
        ]
        try:
            returncode = await camera.process.wait()
        except Exception as e:
            self.handle_terminal_event(pid, TerminalEvent.ERRORED, e, camera=camera)
            for reader in readers:
                reader.cancel()
            return

        self.handle_terminal_event(pid, TerminalEvent.EXITED, camera.signal_code or returncode, camera=camera)
        await asyncio.gather(*readers, return_exceptions=True)
        self.handle_terminal_event(pid, TerminalEvent.CLOSED, returncode, camera=camera)

    async def _pump(self, camera: CameraProcess, stream: Optional[asyncio.StreamReader], is_stderr: bool) -> None:
        if stream is None:
            return
        while True:
            line = await stream.readline()
            if not line:
                return
            text = line.decode(errors="replace").strip()
            if not text:
                continue
            if is_stderr:
                camera.logger.warning("%s", text)
            else:
                camera.logger.info("%s", text)

    # ------------------------------------------------------------------
    # Terminal events

    def handle_terminal_event(
        self,
        pid: Optional[int],
        event: TerminalEvent,
        detail: Any = None,
        *,
        camera: Optional[CameraProcess] = None,
    ) -> bool:
        """Mark a process terminal and drop it from the live map.

        Safe to call any number of times for the same pid; only the first
        call for a live entry removes it. Returns True if an entry was removed.
        """
        if camera is not None:
            camera.mark_terminal(event)

        live = self.processes.get(pid)
        if live is None or (camera is not None and live is not camera):
            logger.debug("Ignoring %s for pid %s (not live)", event.value, pid)
            return False

        del self.processes[pid]
        live.mark_terminal(event)
        logger.info("Camera %s: pid=%s %s", event.value, pid, "" if detail is None else detail)
        return True

    # ------------------------------------------------------------------
    # Kill

    async def kill_process(
        self,
        camera: CameraProcess,
        sig: SignalLike = GRACEFUL_SIGNAL,
        timeout: Optional[float] = None,
    ) -> None:
        """Signal ``camera`` and wait for a terminal event.

        Raises KillTimeout if nothing terminal happens within ``timeout``.
        """
        timeout = self.settings.kill_timeout if timeout is None else timeout
        if camera.has_exited() or camera.terminated.is_set():
            return

        try:
            camera.process.send_signal(sig)
        except ProcessLookupError:
            logger.debug("pid %s already gone before %s", camera.pid, signal_name(sig))

        try:
            await asyncio.wait_for(camera.terminated.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise KillTimeout(camera.pid, timeout) from None

    async def _kill_and_remove(self, camera: CameraProcess, sig: SignalLike) -> None:
        await self.kill_process(camera, sig)
        self.handle_terminal_event(camera.pid, TerminalEvent.KILLED, signal_name(sig), camera=camera)

    async def kill_all(self, sig: SignalLike = GRACEFUL_SIGNAL) -> List[KillFailure]:
        """Kill every live process and wait for all of them to settle.

        Processes that already exited are removed without a signal. A failed
        kill leaves its entry in the live map and is returned as a KillFailure.
        """
        targets: List[CameraProcess] = []
        for pid, camera in list(self.processes.items()):
            if camera.has_exited():
                self.handle_terminal_event(pid, TerminalEvent.EXITED, camera.process.returncode, camera=camera)
            else:
                targets.append(camera)

        if not targets:
            return []

        logger.info("Sending %s to %d process(es)", signal_name(sig), len(targets))
        results = await asyncio.gather(
            *(self._kill_and_remove(camera, sig) for camera in targets),
            return_exceptions=True,
        )

        failures: List[KillFailure] = []
        for camera, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error("Failed to kill pid %s: %s", camera.pid, result)
                failures.append(KillFailure(camera.pid, result))
        return failures

    async def restart(self) -> List[CameraProcess]:
        """Kill everything, then start again. Raises KillError without respawning
        if any process refused to die."""
        failures = await self.kill_all()
        if failures:
            raise KillError(failures)
        return await self.start_all()

    # ------------------------------------------------------------------
    # Queries

    def live_processes(self) -> List[CameraProcess]:
        return list(self.processes.values())

    def display_name(self, camera: CameraProcess, index: int) -> str:
        name = self.camera_names.get(camera.pid) if camera.pid is not None else None
        return name if name is not None else str(index)


__all__ = ["CameraSupervisor", "GRACEFUL_SIGNAL", "signal_name", "spawn_subprocess"]
