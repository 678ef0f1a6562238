"""Recording session façade over the supervisor and the control channel.

Every operation reads the supervisor's live map at the moment it acts, so a
request that arrives mid-restart only sees processes that are still alive.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import aiofiles.os

from .camera_process import CameraProcess
from .control import Commands, send_line
from .errors import ControlChannelClosed
from .logging_utils import get_module_logger
from .storage import StorageInspector
from .supervisor import CameraSupervisor

logger = get_module_logger("CameraSession")

TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def format_timestamp(when: datetime.datetime) -> str:
    """``YYYY-MM-DD-HH-MM-SS`` with zero padding."""
    return when.strftime(TIMESTAMP_FORMAT)


def make_file_stem(label: str, name: str, when: datetime.datetime) -> str:
    return f"{label}_Video{name}--{format_timestamp(when)}"


@dataclass
class BroadcastResult:
    sent: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sent": self.sent,
            "failed": {str(pid): message for pid, message in self.failed.items()},
        }


@dataclass
class RecordResult(BroadcastResult):
    files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["files"] = self.files
        return data


class CameraSession:
    """Operations exposed to the HTTP layer."""

    def __init__(
        self,
        supervisor: CameraSupervisor,
        video_dir: Path,
        storage: Optional[StorageInspector] = None,
        clock=datetime.datetime.now,
    ):
        self.supervisor = supervisor
        self.video_dir = Path(video_dir)
        self.storage = storage or StorageInspector(self.video_dir)
        self.record_files: List[str] = []
        self._clock = clock

    # ------------------------------------------------------------------
    # Control channel

    async def _send(self, camera: CameraProcess, command: str, result: BroadcastResult) -> bool:
        try:
            await send_line(camera.process, command)
        except ControlChannelClosed as e:
            logger.error("Failed to send %r to pid %s: %s", command, camera.pid, e)
            result.failed[camera.pid] = str(e)
            return False
        result.sent.append(camera.pid)
        logger.debug("Sent %r to pid %s", command, camera.pid)
        return True

    async def broadcast(self, command: str) -> BroadcastResult:
        """Send ``command`` to every live process; failures don't stop the rest."""
        result = BroadcastResult()
        for camera in self.supervisor.live_processes():
            await self._send(camera, command, result)
        return result

    async def add_client(self, ip: str) -> BroadcastResult:
        result = BroadcastResult()
        for camera in self.supervisor.live_processes():
            await self._send(camera, Commands.add_client(ip, camera.port), result)
        return result

    async def play(self) -> BroadcastResult:
        return await self.broadcast(Commands.PLAY)

    async def pause(self) -> BroadcastResult:
        return await self.broadcast(Commands.PAUSE)

    async def stop(self) -> BroadcastResult:
        return await self.broadcast(Commands.STOP)

    # ------------------------------------------------------------------
    # Recording

    async def start_recording(self, label: str) -> RecordResult:
        """Tell every process to record to ``<video_dir>/<stem>``."""
        if not label:
            raise ValueError("session label is required")

        self.record_files.clear()
        result = RecordResult()
        for index, camera in enumerate(self.supervisor.live_processes()):
            stem = make_file_stem(label, self.supervisor.display_name(camera, index), self._clock())
            if await self._send(camera, Commands.record(str(self.video_dir / stem)), result):
                self.record_files.append(stem)
                result.files.append(stem)

        logger.info("Recording session %r: %d file(s)", label, len(result.files))
        return result

    async def stop_recording(self, delete_files: bool = False) -> RecordResult:
        """Stop recording, optionally removing the files of this session."""
        broadcast = await self.broadcast(Commands.STOP_RECORD)
        result = RecordResult(sent=broadcast.sent, failed=broadcast.failed)

        if delete_files and self.record_files:
            result.files = await self._delete_session_files(list(self.record_files))

        self.record_files.clear()
        return result

    async def _delete_session_files(self, stems: List[str]) -> List[str]:
        deleted: List[str] = []
        entries = await aiofiles.os.listdir(self.video_dir)
        for stem in stems:
            for entry in entries:
                if not entry.startswith(stem):
                    continue
                try:
                    await aiofiles.os.remove(self.video_dir / entry)
                except FileNotFoundError:
                    continue
                deleted.append(entry)
                logger.info("Deleted %s", entry)
        return deleted

    # ------------------------------------------------------------------
    # Management

    async def restart(self) -> List[CameraProcess]:
        return await self.supervisor.restart()

    def set_camera_names(self, names: Mapping[Any, str]) -> Dict[int, str]:
        """Assign display names by pid. Non-numeric keys are rejected."""
        parsed: Dict[int, str] = {}
        for key, value in names.items():
            try:
                pid = int(key)
            except (TypeError, ValueError):
                raise ValueError(f"camera name key must be a pid, got {key!r}") from None
            parsed[pid] = str(value)
        self.supervisor.camera_names.update(parsed)
        return dict(self.supervisor.camera_names)

    async def status(self) -> Dict[str, Any]:
        """Process summaries plus best-effort storage information."""
        status: Dict[str, Any] = {
            "processes": [camera.summary() for camera in self.supervisor.live_processes()],
        }
        status.update(await self.storage.snapshot())
        return status


__all__ = [
    "BroadcastResult",
    "CameraSession",
    "RecordResult",
    "format_timestamp",
    "make_file_stem",
]
