"""
API Server - aiohttp-based HTTP control surface for the camera fleet.

Runs on the same event loop as the supervisor, so handlers act directly on
the live process map.
"""

from typing import Optional

from aiohttp import web

from camera_fleet.core.logging_utils import get_module_logger
from camera_fleet.core.session import CameraSession

from .middleware import (
    error_handling_middleware,
    request_logging_middleware,
    set_debug_mode,
)
from .routes import setup_all_routes


logger = get_module_logger("APIServer")


def create_app(session: CameraSession) -> web.Application:
    """Create and configure the aiohttp application."""
    app = web.Application(middlewares=[request_logging_middleware, error_handling_middleware])
    app["session"] = session
    setup_all_routes(app, session)
    return app


class APIServer:
    """
    HTTP server exposing the recording session operations.

    Clients on the local network call it to register themselves as stream
    receivers and to drive recording, so it binds to all interfaces by default.
    """

    def __init__(
        self,
        session: CameraSession,
        host: str = "0.0.0.0",
        port: int = 8080,
        debug: bool = False,
    ):
        """
        Args:
            session: CameraSession wrapping the supervisor
            host: Host to bind to
            port: Port to bind to (default: 8080)
            debug: If True, enable verbose error responses
        """
        self.session = session
        self.host = host
        self.port = port
        self.debug = debug

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._running = False

        set_debug_mode(debug)

    async def start(self) -> None:
        """Start the API server (non-blocking)."""
        if self._running:
            logger.warning("API server already running")
            return

        self._app = create_app(self.session)
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        mode_info = " (debug mode)" if self.debug else ""
        logger.info("API server started on %s%s", self.url, mode_info)

    async def stop(self) -> None:
        """Stop the API server gracefully."""
        if not self._running:
            return

        logger.info("Stopping API server...")

        if self._site:
            await self._site.stop()
            self._site = None

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        self._app = None
        self._running = False

        logger.info("API server stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"
