"""Services layer for PressTalk application logic."""

from .permission_gate import PermissionGate, PermissionProvider, SystemPermissionProvider
from .recording_service import RecordingController, STATUS_TOPIC

__all__ = [
    "PermissionGate",
    "PermissionProvider",
    "SystemPermissionProvider",
    "RecordingController",
    "STATUS_TOPIC",
]
