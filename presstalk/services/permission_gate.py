"""Microphone permission checks that run before every capture."""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List

import pyaudio

from ..exceptions import PermissionDeniedError
from ..models.permissions import Permission, PermissionStatus, PermissionCheck

logger = logging.getLogger(__name__)

REQUIRED_PERMISSIONS = (Permission.MICROPHONE, Permission.SPEECH_RECOGNITION)

WEB_PERMISSION_MESSAGE = "Microphone permission is required for recording."
PERMANENTLY_DENIED_SUFFIX = (
    "\n\nThese permissions have been permanently denied. Please enable them in Settings."
)

MACOS_MICROPHONE_SETTINGS = "x-apple.systempreferences:com.apple.preference.security?Privacy_Microphone"
WINDOWS_MICROPHONE_SETTINGS = "ms-settings:privacy-microphone"


class PermissionProvider(ABC):
    """Platform permission API."""

    @abstractmethod
    def status(self, permission: Permission) -> PermissionStatus:
        """Current status without prompting."""

    @abstractmethod
    def request(self, permissions: Iterable[Permission]) -> Dict[Permission, PermissionStatus]:
        """Ask for the permissions and return their resulting statuses."""

    @abstractmethod
    def open_settings(self) -> None:
        """Send the user to the system settings where access can be granted."""


class SystemPermissionProvider(PermissionProvider):
    """Desktop permissions, derived from whether PyAudio can open the microphone.

    Desktop platforms have no separate speech-recognition grant, so it follows
    the microphone only when ``require_speech_recognition`` is set.
    """

    def __init__(self, require_speech_recognition: bool = False):
        self.require_speech_recognition = require_speech_recognition

    def _probe_microphone(self) -> PermissionStatus:
        instance = pyaudio.PyAudio()
        try:
            instance.get_default_input_device_info()
            stream = instance.open(format=pyaudio.paInt16, channels=1, rate=16000,
                                   input=True, frames_per_buffer=256)
            stream.close()
            return PermissionStatus.GRANTED
        except (IOError, OSError) as e:
            if "permission" in str(e).lower():
                logger.error(f"Microphone access blocked by the operating system: {e}")
                return PermissionStatus.PERMANENTLY_DENIED
            logger.warning(f"Microphone not available: {e}")
            return PermissionStatus.DENIED
        finally:
            instance.terminate()

    def status(self, permission: Permission) -> PermissionStatus:
        if permission is Permission.SPEECH_RECOGNITION and not self.require_speech_recognition:
            return PermissionStatus.GRANTED
        return self._probe_microphone()

    def request(self, permissions: Iterable[Permission]) -> Dict[Permission, PermissionStatus]:
        # Desktop access cannot be prompted for from here, so a request is a fresh probe
        return {permission: self.status(permission) for permission in permissions}

    def open_settings(self) -> None:
        if sys.platform == "darwin":
            subprocess.run(["open", MACOS_MICROPHONE_SETTINGS], check=False)
        elif sys.platform == "win32":
            subprocess.run(["cmd", "/c", "start", WINDOWS_MICROPHONE_SETTINGS], check=False)
        else:
            logger.warning("Grant microphone access in your system sound/privacy settings, then restart PressTalk")


def describe_denied(statuses: Dict[Permission, PermissionStatus]) -> str:
    """Build 'Microphone and Speech Recognition permissions are required.' style messages."""
    denied: List[str] = [
        permission.value for permission in REQUIRED_PERMISSIONS
        if not statuses.get(permission, PermissionStatus.DENIED).is_granted
    ]
    verb = "s are" if len(denied) > 1 else " is"
    return f"{' and '.join(denied)} permission{verb} required."


class PermissionGate:
    """Decides whether capture may start, requesting access when needed."""

    def __init__(self, provider: PermissionProvider, recorder, platform: str = "native"):
        """Initialize the gate.

        Args:
            provider: Platform permission API (used on native platforms)
            recorder: Capture device; its has_permission() is the web check
            platform: "native" or "web"
        """
        self.provider = provider
        self.recorder = recorder
        self.platform = platform

    def are_permissions_granted(self) -> bool:
        if self.platform == "web":
            return self.recorder.has_permission()
        return all(self.provider.status(p).is_granted for p in REQUIRED_PERMISSIONS)

    def ensure(self) -> PermissionCheck:
        """Check, and if necessary request, the permissions capture needs."""
        logger.info("Checking permissions...")

        if self.platform == "web":
            has_permission = self.recorder.has_permission()
            logger.info(f"Web audio permission status: {has_permission}")
            if not has_permission:
                return PermissionCheck(granted=False, message=WEB_PERMISSION_MESSAGE)
            return PermissionCheck(granted=True)

        if self.are_permissions_granted():
            logger.info("All required permissions already granted")
            return PermissionCheck(granted=True)

        statuses = self.provider.request(REQUIRED_PERMISSIONS)
        if all(statuses.get(p, PermissionStatus.DENIED).is_granted for p in REQUIRED_PERMISSIONS):
            logger.info("All required permissions granted")
            return PermissionCheck(granted=True)

        logger.error(f"Required permissions not granted. Statuses: {statuses}")
        message = describe_denied(statuses)

        permanently_denied = any(
            status is PermissionStatus.PERMANENTLY_DENIED for status in statuses.values()
        )
        if permanently_denied:
            message += PERMANENTLY_DENIED_SUFFIX
            self.provider.open_settings()

        return PermissionCheck(granted=False, message=message.strip(),
                               permanently_denied=permanently_denied)

    def require(self) -> None:
        """Like ensure(), but a refusal raises.

        Raises:
            PermissionDeniedError: carrying the message to show the user
        """
        check = self.ensure()
        if not check.granted:
            raise PermissionDeniedError(check.message or "", permanently=check.permanently_denied)
