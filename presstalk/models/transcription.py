"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class TranscriptionResult:
    """Outcome of a transcription request.

    ``text`` holds the transcript on success and a user-facing error
    message otherwise, so it can go straight to the status line.
    """
    text: str
    is_error: bool = False
    status_code: Optional[int] = None
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    service: str = "OpenAI Whisper"
