"""Best-effort storage information for status reporting."""

from __future__ import annotations

import asyncio
import datetime
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles.os
import psutil

from .logging_utils import get_module_logger

logger = get_module_logger("StorageInspector")


def get_storage_stats() -> List[Dict[str, Any]]:
    drives = []
    for partition in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError:
            continue
        drives.append({
            "device": partition.device,
            "size": usage.total,
            "used": usage.used,
            "available": usage.free,
            "use": f"{usage.percent:.0f}%",
            "mount": partition.mountpoint,
        })
    return drives


def _raise(error: OSError) -> None:
    raise error


def folder_size(path: Path) -> int:
    """Total size of the files under ``path``. Raises OSError if it can't be read."""
    if not os.path.isdir(path):
        raise NotADirectoryError(f"Not a directory: {path}")
    total = 0
    for root, _dirs, files in os.walk(path, onerror=_raise):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                continue
    return total


class StorageInspector:
    """Collects disk and video directory information without ever raising."""

    def __init__(self, video_dir: Path):
        self.video_dir = Path(video_dir)

    async def storage_stats(self) -> Optional[List[Dict[str, Any]]]:
        try:
            return await asyncio.to_thread(get_storage_stats)
        except (OSError, psutil.Error) as e:
            logger.error("Failed to read storage stats: %s", e)
            return None

    async def video_files(self) -> Optional[List[Dict[str, Any]]]:
        try:
            names = await aiofiles.os.listdir(self.video_dir)
        except OSError as e:
            logger.error("Failed to list %s: %s", self.video_dir, e)
            return None

        files = []
        for name in sorted(names):
            try:
                stats = await aiofiles.os.stat(self.video_dir / name)
            except OSError:
                continue
            files.append({
                "name": name,
                "size": stats.st_size,
                "date": datetime.datetime.fromtimestamp(stats.st_ctime).isoformat(),
            })
        return files

    async def folder_size(self) -> Optional[int]:
        try:
            return await asyncio.to_thread(folder_size, self.video_dir)
        except OSError as e:
            logger.error("Failed to size %s: %s", self.video_dir, e)
            return None

    async def snapshot(self) -> Dict[str, Any]:
        free_storage, video_files, size = await asyncio.gather(
            self.storage_stats(),
            self.video_files(),
            self.folder_size(),
        )
        return {
            "freeStorage": free_storage,
            "videoFiles": video_files,
            "folderSize": size,
        }


__all__ = ["StorageInspector", "folder_size", "get_storage_stats"]
