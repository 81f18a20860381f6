"""Transcription module for PressTalk."""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptionResult
from .openai_backend import OpenAITranscriptionBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionResult",
    "OpenAITranscriptionBackend",
]
