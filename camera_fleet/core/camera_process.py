"""Handle for one spawned camera streaming process."""

from __future__ import annotations

import asyncio
import signal
from enum import Enum
from typing import Any, Dict, List, Optional

from .logging_utils import get_module_logger


class TerminalEvent(Enum):
    EXITED = "exit"
    ERRORED = "error"
    CLOSED = "close"
    DISCONNECTED = "disconnect"
    KILLED = "killed"


class CameraProcess:
    """A spawned streaming process and the port it serves.

    ``process`` is an ``asyncio.subprocess.Process`` (or anything exposing
    pid, returncode, stdin/stdout/stderr, wait() and send_signal()).
    """

    def __init__(self, port: int, process: Any, args: List[str], device_path: Optional[str] = None):
        self.port = port
        self.process = process
        self.args = list(args)
        self.device_path = device_path
        self.logger = get_module_logger(f"CameraProcess.{process.pid}")

        self.terminated = asyncio.Event()
        self.terminal_event: Optional[TerminalEvent] = None

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid

    @property
    def exit_code(self) -> Optional[int]:
        returncode = self.process.returncode
        if returncode is None or returncode < 0:
            return None
        return returncode

    @property
    def signal_code(self) -> Optional[str]:
        returncode = self.process.returncode
        if returncode is None or returncode >= 0:
            return None
        try:
            return signal.Signals(-returncode).name
        except ValueError:
            return str(-returncode)

    def has_exited(self) -> bool:
        return self.process.returncode is not None

    def mark_terminal(self, event: TerminalEvent) -> bool:
        """Record the first terminal event. Later calls return False."""
        if self.terminated.is_set():
            return False
        self.terminal_event = event
        self.terminated.set()
        return True

    def summary(self) -> Dict[str, Any]:
        return {
            "args": self.args,
            "exitCode": self.exit_code,
            "signalCode": self.signal_code,
            "pid": self.pid,
            "port": self.port,
        }

    def __repr__(self) -> str:
        return f"CameraProcess(pid={self.pid}, port={self.port}, device={self.device_path!r})"


__all__ = ["CameraProcess", "TerminalEvent"]
