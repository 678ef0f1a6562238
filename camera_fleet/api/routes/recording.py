"""Recording Routes - Client registration and playback/record control."""

from aiohttp import web

from camera_fleet.core.session import CameraSession

from ..middleware import create_error_response

FALSE_VALUES = {"", "0", "false", "no", "off"}


def setup_recording_routes(app: web.Application, session: CameraSession) -> None:
    """Register recording routes."""
    app.router.add_get("/request", request_handler)
    app.router.add_get("/record", record_handler)
    app.router.add_get("/stoprecord", stop_record_handler)
    app.router.add_get("/play", play_handler)
    app.router.add_get("/pause", pause_handler)
    app.router.add_get("/stop", stop_handler)


def client_ip(request: web.Request) -> str:
    """Last ``:`` component of the peer address, so ``::ffff:10.0.0.5`` -> ``10.0.0.5``."""
    remote = request.remote or ""
    return remote.split(":")[-1]


def query_flag(request: web.Request, name: str) -> bool:
    if name not in request.query:
        return False
    return request.query[name].strip().lower() not in FALSE_VALUES


async def request_handler(request: web.Request) -> web.Response:
    """GET /request - Stream every camera to the requesting client."""
    session: CameraSession = request.app["session"]
    ip = client_ip(request)
    if not ip:
        return create_error_response("UNKNOWN_CLIENT", "Could not determine client address", status=400)
    result = await session.add_client(ip)
    return web.json_response({"client": ip, **result.to_dict()})


async def record_handler(request: web.Request) -> web.Response:
    """GET /record?session=<label> - Start recording on every camera."""
    session: CameraSession = request.app["session"]
    label = request.query.get("session", "").strip()
    if not label:
        return create_error_response("MISSING_FIELD", "Query parameter 'session' is required", status=400)
    result = await session.start_recording(label)
    return web.json_response(result.to_dict())


async def stop_record_handler(request: web.Request) -> web.Response:
    """GET /stoprecord[?deleteFiles=true] - Stop recording."""
    session: CameraSession = request.app["session"]
    result = await session.stop_recording(delete_files=query_flag(request, "deleteFiles"))
    return web.json_response(result.to_dict())


async def play_handler(request: web.Request) -> web.Response:
    """GET /play"""
    session: CameraSession = request.app["session"]
    return web.json_response((await session.play()).to_dict())


async def pause_handler(request: web.Request) -> web.Response:
    """GET /pause"""
    session: CameraSession = request.app["session"]
    return web.json_response((await session.pause()).to_dict())


async def stop_handler(request: web.Request) -> web.Response:
    """GET /stop"""
    session: CameraSession = request.app["session"]
    return web.json_response((await session.stop()).to_dict())
