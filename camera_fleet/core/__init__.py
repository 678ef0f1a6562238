
from .camera_process import CameraProcess, TerminalEvent
from .errors import (
    CameraFleetError,
    ControlChannelClosed,
    KillError,
    KillFailure,
    KillTimeout,
)
from .formats import CameraDevice, CaptureFormat, select_format
from .session import BroadcastResult, CameraSession, RecordResult
from .settings import Settings, load_settings
from .shutdown_coordinator import ShutdownCoordinator
from .supervisor import CameraSupervisor

__all__ = [
    'BroadcastResult',
    'CameraDevice',
    'CameraFleetError',
    'CameraProcess',
    'CameraSession',
    'CameraSupervisor',
    'CaptureFormat',
    'ControlChannelClosed',
    'KillError',
    'KillFailure',
    'KillTimeout',
    'RecordResult',
    'Settings',
    'ShutdownCoordinator',
    'TerminalEvent',
    'load_settings',
    'select_format',
]
