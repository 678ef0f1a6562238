"""Camera discovery through the GStreamer device monitor."""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from .capabilities import parse_device_monitor_output
from .formats import CameraDevice, resolve_devices
from .logging_utils import get_module_logger

logger = get_module_logger("CameraDiscovery")

DISCOVERY_TIMEOUT = 10.0


async def run_discovery_command(command: Sequence[str], timeout: float = DISCOVERY_TIMEOUT) -> str:
    """Run the enumeration command and return its stdout ('' on any failure)."""
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("Cannot run %s: %s", command[0], e)
        return ""

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("%s did not finish within %.1fs", command[0], timeout)
        process.kill()
        await process.wait()
        return ""

    if process.returncode != 0:
        logger.warning(
            "%s exited with code %s: %s",
            command[0],
            process.returncode,
            stderr.decode(errors="replace").strip(),
        )
    return stdout.decode(errors="replace")


async def discover_cameras(command: Sequence[str]) -> List[CameraDevice]:
    """Enumerate attached cameras with at least one usable capture format.

    Tool failures and unparseable output yield an empty list.
    """
    output = await run_discovery_command(command)
    if not output.strip():
        logger.warning("Device monitor returned no output")
        return []

    records = parse_device_monitor_output(output)
    devices = resolve_devices(records)
    logger.info("Discovered %d device(s), %d usable", len(records), len(devices))
    for device in devices:
        logger.debug("  %s (%s): %d format(s)", device.path, device.name or "unnamed", len(device.formats))
    return devices


__all__ = ["DISCOVERY_TIMEOUT", "discover_cameras", "run_discovery_command"]
