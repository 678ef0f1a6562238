"""
HTTP control API for the camera fleet.

Usage:
    camera-fleet --video-dir /srv/videos --http-port 8080
"""

from .server import APIServer, create_app

__all__ = ["APIServer", "create_app"]
