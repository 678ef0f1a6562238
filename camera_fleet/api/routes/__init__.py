"""
API route modules.

- recording: add-client, record, stop-record, play, pause, stop
- system: restart, status, camera names
"""

from .recording import setup_recording_routes
from .system import setup_system_routes


def setup_all_routes(app, session):
    """Register all API routes with the application."""
    setup_recording_routes(app, session)
    setup_system_routes(app, session)


__all__ = ["setup_all_routes"]
