"""Permission-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Permission(Enum):
    MICROPHONE = "Microphone"
    SPEECH_RECOGNITION = "Speech Recognition"


class PermissionStatus(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PERMANENTLY_DENIED = "permanently_denied"

    @property
    def is_granted(self) -> bool:
        return self is PermissionStatus.GRANTED


@dataclass
class PermissionCheck:
    """Result of running the permission gate."""
    granted: bool
    message: Optional[str] = None
    permanently_denied: bool = False
