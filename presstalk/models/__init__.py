"""Data models for the PressTalk application."""

from .transcription import TranscriptionResult
from .audio import AudioStats
from .session import RecordConfig, RecordingSession
from .ui import (
    ControllerState,
    TranscriptionStatus,
    ButtonAppearance,
    IDLE_PROMPT,
    idle_prompt,
    RECORDING_TEXT,
    PROCESSING_TEXT,
)
from .permissions import Permission, PermissionStatus, PermissionCheck

__all__ = [
    "TranscriptionResult",
    "AudioStats",
    "RecordConfig",
    "RecordingSession",
    "ControllerState",
    "TranscriptionStatus",
    "ButtonAppearance",
    "IDLE_PROMPT",
    "idle_prompt",
    "RECORDING_TEXT",
    "PROCESSING_TEXT",
    "Permission",
    "PermissionStatus",
    "PermissionCheck",
]
