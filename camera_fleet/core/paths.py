"""Centralized path constants for the camera fleet service."""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Configuration
_CONFIG_ENV = os.environ.get("CAMERA_FLEET_CONFIG")
CONFIG_PATH = Path(_CONFIG_ENV).expanduser() if _CONFIG_ENV else PROJECT_ROOT / "config.txt"

# Logging
LOGS_DIR = PROJECT_ROOT / "logs"
MASTER_LOG_FILE = LOGS_DIR / "camera_fleet.log"


def ensure_directories() -> None:
    """Create necessary directories if they don't exist."""
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "LOGS_DIR",
    "MASTER_LOG_FILE",
    "ensure_directories",
]
