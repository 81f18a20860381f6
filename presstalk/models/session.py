"""Recording session data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RecordConfig:
    """Encoder settings handed to the capture device."""
    encoder: str = "wav"
    bit_rate: int = 128000  # Informational for PCM WAV, the rate follows from the format
    sample_rate: int = 44100
    num_channels: int = 1


@dataclass
class RecordingSession:
    """One start-to-stop microphone capture."""
    config: RecordConfig
    source_handle: Optional[str] = None  # File path on native, None for in-memory capture
    is_active: bool = True
    started_at: datetime = field(default_factory=datetime.now)
