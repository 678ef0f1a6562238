"""Exceptions raised by the camera supervisor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


class CameraFleetError(Exception):
    """Base class for supervisor errors."""


class ControlChannelClosed(CameraFleetError, ConnectionError):
    """The process's stdin is gone, closing or broken."""


class KillTimeout(CameraFleetError, TimeoutError):
    """A signalled process produced no terminal event in time."""

    def __init__(self, pid: Optional[int], timeout: float):
        super().__init__(f"Process {pid} did not terminate within {timeout:.1f}s")
        self.pid = pid
        self.timeout = timeout


@dataclass(frozen=True, slots=True)
class KillFailure:
    pid: Optional[int]
    error: BaseException

    def to_dict(self) -> dict:
        return {
            "pid": self.pid,
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


class KillError(CameraFleetError):
    """One or more processes could not be killed."""

    def __init__(self, failures: List[KillFailure]):
        pids = ", ".join(str(f.pid) for f in failures)
        super().__init__(f"Failed to kill {len(failures)} process(es): {pids}")
        self.failures = list(failures)


__all__ = [
    "CameraFleetError",
    "ControlChannelClosed",
    "KillError",
    "KillFailure",
    "KillTimeout",
]
