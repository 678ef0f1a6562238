"""System Routes - Restart, status and camera naming."""

from aiohttp import web

from camera_fleet.core.errors import KillError
from camera_fleet.core.session import CameraSession

from ..middleware import create_error_response


def setup_system_routes(app: web.Application, session: CameraSession) -> None:
    """Register system routes."""
    app.router.add_get("/restart", restart_handler)
    app.router.add_get("/status", status_handler)
    app.router.add_get("/setCameraNames", set_camera_names_handler)


async def restart_handler(request: web.Request) -> web.Response:
    """GET /restart - Kill all cameras and start them again."""
    session: CameraSession = request.app["session"]
    try:
        started = await session.restart()
    except KillError as e:
        return create_error_response(
            "KILL_FAILED",
            str(e),
            status=500,
            details={"failures": [failure.to_dict() for failure in e.failures]},
        )
    return web.json_response({"started": [camera.summary() for camera in started]})


async def status_handler(request: web.Request) -> web.Response:
    """GET /status - Live processes plus storage information."""
    session: CameraSession = request.app["session"]
    return web.json_response(await session.status())


async def set_camera_names_handler(request: web.Request) -> web.Response:
    """GET /setCameraNames?<pid>=<name>&... - Assign display names by pid."""
    session: CameraSession = request.app["session"]
    names = session.set_camera_names(dict(request.query))
    return web.json_response({"cameraNames": {str(pid): name for pid, name in names.items()}})
