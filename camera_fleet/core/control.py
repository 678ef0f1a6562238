"""One-way stdin control channel for camera processes.

Commands are plain text lines understood by the streaming binary. Nothing is
read back: a send completes once the line has been flushed to the pipe.
"""

from __future__ import annotations

from typing import Any

from .errors import ControlChannelClosed


async def send_line(process: Any, command: str) -> None:
    """Write ``command`` plus a newline to ``process.stdin`` and flush it.

    Raises ControlChannelClosed if stdin is missing or closing, or if the
    flush reports a broken pipe.
    """
    stdin = getattr(process, "stdin", None)
    if stdin is None or stdin.is_closing():
        raise ControlChannelClosed("Cannot write to process stdin")

    try:
        stdin.write(f"{command}\n".encode())
        await stdin.drain()
    except (BrokenPipeError, ConnectionResetError) as e:
        raise ControlChannelClosed(f"Cannot write to process stdin: {e}") from e


class Commands:
    """Command vocabulary of the streaming binary."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    STOP_RECORD = "stoprecord"

    @staticmethod
    def add_client(ip: str, port: int) -> str:
        return f"addclient {ip} {port}"

    @staticmethod
    def record(path: str) -> str:
        escaped = path.replace("\\", "\\\\")
        return f'record "{escaped}"'


__all__ = ["Commands", "send_line"]
