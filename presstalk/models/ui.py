"""UI-related data models."""

from dataclasses import dataclass
from enum import Enum


IDLE_PROMPT = "Press and hold the space bar to record"
RECORDING_TEXT = "Recording..."
PROCESSING_TEXT = "Processing..."


def idle_prompt(hold_key: str = "space", toggle: bool = False) -> str:
    """Idle status line for the configured gesture."""
    if toggle:
        return "Press Enter to record"
    if hold_key == "space":
        return IDLE_PROMPT
    return f"Press and hold {hold_key} to record"


class ControllerState(Enum):
    """Lifecycle of one recording cycle."""
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


@dataclass
class TranscriptionStatus:
    """What the screen shows: the controller state and the status line."""
    state: ControllerState = ControllerState.IDLE
    status_text: str = IDLE_PROMPT

    @property
    def is_recording(self) -> bool:
        return self.state is ControllerState.RECORDING


@dataclass(frozen=True)
class ButtonAppearance:
    """Icon and colour of the record/stop button."""
    icon: str
    label: str
    color: str
