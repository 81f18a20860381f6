"""Terminal user interface for PressTalk."""

from .keyboard_input import PushToTalkHandler, ToggleInputHandler, create_input_handler
from .transcription_screen import TranscriptionScreen, button_appearance, render_status

__all__ = [
    "PushToTalkHandler",
    "ToggleInputHandler",
    "create_input_handler",
    "TranscriptionScreen",
    "button_appearance",
    "render_status",
]
