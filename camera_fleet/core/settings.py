"""Runtime settings resolved from config.txt and the environment."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from .config_manager import get_config_manager
from .paths import CONFIG_PATH

DEFAULT_DISCOVERY_COMMAND = "gst-device-monitor-1.0 Video/Source:image/jpeg,width=1920,height=1080"
ENV_PREFIX = "CAMERA_FLEET_"


@dataclass(slots=True)
class Settings:
    video_dir: Optional[Path] = None
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    base_port: int = 5000
    stream_binary: str = "cam2rtpfile"
    discovery_command: list[str] = field(default_factory=lambda: shlex.split(DEFAULT_DISCOVERY_COMMAND))
    pixel_format: str = "image/jpeg"
    width: int = 1920
    height: int = 1080
    kill_timeout: float = 2.0
    log_level: str = "info"
    console_output: bool = True
    debug: bool = False

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_settings(
    config_path: Path = CONFIG_PATH,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from ``config_path`` with environment variables on top.

    ``VIDEO_DIR`` is honoured for compatibility with existing deployments;
    every other key can be overridden as ``CAMERA_FLEET_<KEY>``.
    """
    environ = os.environ if environ is None else environ
    manager = get_config_manager()
    config = dict(manager.read_config(config_path))

    for key in Settings.__dataclass_fields__:
        env_value = environ.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            config[key] = env_value
    if environ.get("VIDEO_DIR"):
        config["video_dir"] = environ["VIDEO_DIR"]

    defaults = Settings()
    video_dir = manager.get_str(config, "video_dir")
    discovery = manager.get_str(config, "discovery_command")

    return Settings(
        video_dir=Path(video_dir).expanduser() if video_dir else None,
        http_host=manager.get_str(config, "http_host", defaults.http_host),
        http_port=manager.get_int(config, "http_port", defaults.http_port),
        base_port=manager.get_int(config, "base_port", defaults.base_port),
        stream_binary=manager.get_str(config, "stream_binary", defaults.stream_binary),
        discovery_command=shlex.split(discovery) if discovery else defaults.discovery_command,
        pixel_format=manager.get_str(config, "pixel_format", defaults.pixel_format),
        width=manager.get_int(config, "width", defaults.width),
        height=manager.get_int(config, "height", defaults.height),
        kill_timeout=manager.get_float(config, "kill_timeout", defaults.kill_timeout),
        log_level=manager.get_str(config, "log_level", defaults.log_level),
        console_output=manager.get_bool(config, "console_output", defaults.console_output),
        debug=manager.get_bool(config, "debug", defaults.debug),
    )


__all__ = ["Settings", "load_settings", "DEFAULT_DISCOVERY_COMMAND"]
