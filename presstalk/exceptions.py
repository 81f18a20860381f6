"""Exception hierarchy for PressTalk."""

from typing import Optional


class PressTalkError(Exception):
    """Base class for all PressTalk errors."""


class PermissionDeniedError(PressTalkError):
    """Microphone (or speech recognition) access was not granted."""

    def __init__(self, message: str, permanently: bool = False):
        super().__init__(message)
        self.permanently = permanently


class DeviceUnsupportedError(PressTalkError):
    """The capture device cannot record on this machine."""


class AudioExtractionError(PressTalkError):
    """Captured audio could not be turned into a byte sequence."""


class TranscriptionError(PressTalkError):
    """The transcription request failed at the network or server level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationMissingError(PressTalkError):
    """A required configuration value (such as the API key) is absent."""
