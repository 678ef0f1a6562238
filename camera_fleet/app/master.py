import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from camera_fleet.api import APIServer
from camera_fleet.core.logging_config import configure_logging
from camera_fleet.core.logging_utils import get_module_logger
from camera_fleet.core.paths import CONFIG_PATH, MASTER_LOG_FILE, ensure_directories
from camera_fleet.core.session import CameraSession
from camera_fleet.core.settings import Settings, load_settings
from camera_fleet.core.shutdown_coordinator import FORCE_SIGNAL, ShutdownCoordinator, ShutdownState
from camera_fleet.core.supervisor import CameraSupervisor


logger = get_module_logger(__name__)


def parse_args(argv: Optional[list[str]] = None, settings: Optional[Settings] = None) -> argparse.Namespace:
    """Parse command-line arguments with config file and environment defaults."""
    settings = settings or load_settings(CONFIG_PATH)

    parser = argparse.ArgumentParser(
        description="Camera Fleet - Supervises camera streaming processes behind an HTTP control API"
    )

    parser.add_argument(
        "--video-dir",
        type=Path,
        default=settings.video_dir,
        help="Directory recordings are written to (default: $VIDEO_DIR)"
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.http_host,
        help=f"HTTP bind address (default: {settings.http_host})"
    )

    parser.add_argument(
        "--http-port",
        type=int,
        default=settings.http_port,
        help=f"HTTP port (default: {settings.http_port})"
    )

    parser.add_argument(
        "--base-port",
        type=int,
        default=settings.base_port,
        help=f"First stream port; camera i streams to base + i (default: {settings.base_port})"
    )

    parser.add_argument(
        "--log-level",
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        default=settings.log_level,
        help="Logging level (default: info)"
    )

    parser.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=settings.console_output,
        help="Also log to console"
    )

    parser.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Log to file only"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.debug,
        help="Verbose error responses from the HTTP API"
    )

    return parser.parse_args(argv)


def validate_video_dir(video_dir: Optional[Path]) -> bool:
    if video_dir is None:
        logger.error("No video directory configured (set VIDEO_DIR or --video-dir)")
        return False
    if not video_dir.is_dir():
        logger.error("Video directory %s does not exist", video_dir)
        return False
    return True


async def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the camera fleet service.

    Startup:
    1. Resolve settings (CLI > environment > config.txt > defaults)
    2. Validate the video directory, exiting with 1 if it is missing
    3. Discover cameras and spawn one streaming process per camera
    4. Serve the HTTP control API until a termination signal arrives

    The ShutdownCoordinator forwards the signal to every camera process,
    escalates to SIGKILL on failure and produces the exit status.
    """
    settings = load_settings(CONFIG_PATH)
    args = parse_args(argv, settings)
    settings = settings.with_overrides(
        video_dir=args.video_dir,
        http_host=args.host,
        http_port=args.http_port,
        base_port=args.base_port,
        log_level=args.log_level,
        console_output=args.console_output,
        debug=args.debug,
    )

    ensure_directories()

    configure_logging(
        settings.log_level,
        console=settings.console_output,
        log_file=MASTER_LOG_FILE,
    )

    logger.info("=" * 60)
    logger.info("Camera Fleet - Starting")
    logger.info("=" * 60)
    logger.info("Video directory: %s", settings.video_dir)
    logger.info("Discovery: %s", " ".join(settings.discovery_command))
    logger.info("Target format: %s %dx%d", settings.pixel_format, settings.width, settings.height)
    logger.info("Log file: %s", MASTER_LOG_FILE)
    logger.info("=" * 60)

    if not validate_video_dir(settings.video_dir):
        return 1

    supervisor = CameraSupervisor(settings)
    session = CameraSession(supervisor, settings.video_dir)
    server = APIServer(session, host=settings.http_host, port=settings.http_port, debug=settings.debug)

    shutdown_coordinator = ShutdownCoordinator(supervisor)
    shutdown_coordinator.register_cleanup(server.stop)
    shutdown_coordinator.install_signal_handlers()

    started = await supervisor.start_all()
    logger.info("Started %d camera process(es)", len(started))

    if shutdown_coordinator.state is not ShutdownState.RUNNING:
        # A signal arrived while cameras were still being spawned
        await supervisor.kill_all(FORCE_SIGNAL)
        return await shutdown_coordinator.wait_for_shutdown()

    try:
        await server.start()
    except OSError as e:
        logger.error("Failed to start API server on %s: %s", server.url, e)
        await shutdown_coordinator.initiate_shutdown()
        return 1

    exit_code = await shutdown_coordinator.wait_for_shutdown()

    logger.info("=" * 60)
    logger.info("Camera Fleet - Stopped (exit code %d)", exit_code)
    logger.info("=" * 60)
    return exit_code


def run(argv: Optional[list[str]] = None) -> int:
    try:
        return asyncio.run(main(argv))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as exc:  # pragma: no cover - fatal guard
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1


def cli() -> None:
    raise SystemExit(run(sys.argv[1:]))


if __name__ == "__main__":
    cli()
