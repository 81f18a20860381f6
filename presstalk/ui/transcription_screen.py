"""Terminal screen: the status line and the record/stop button."""

import logging
import threading
from typing import Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ..models.audio import AudioStats
from ..models.ui import (
    ButtonAppearance,
    ControllerState,
    TranscriptionStatus,
    IDLE_PROMPT,
)

logger = logging.getLogger(__name__)

MIC_BUTTON = ButtonAppearance(icon="🎙", label="mic", color="blue")
STOP_BUTTON = ButtonAppearance(icon="⏹", label="stop", color="red")


def button_appearance(state: ControllerState) -> ButtonAppearance:
    """Stop button while recording, microphone button otherwise."""
    if state is ControllerState.RECORDING:
        return STOP_BUTTON
    return MIC_BUTTON


def render_button(state: ControllerState) -> Text:
    button = button_appearance(state)
    return Text(f" {button.icon}  {button.label} ", style=f"bold white on {button.color}")


def render_level_meter(stats: AudioStats) -> Text:
    peak_bar = "█" * int(stats.peak_level * 20)
    return Text(f"{stats.duration_seconds:5.1f}s [{peak_bar:<20}] {stats.peak_level:.3f}",
                style="dim")


def render_status(status: TranscriptionStatus,
                  stats: Optional[AudioStats] = None,
                  hint: str = "") -> Panel:
    """Build the whole screen from the controller status."""
    text = status.status_text or IDLE_PROMPT
    parts = [
        Panel(Align.center(Text(text, justify="center")), border_style="grey50", padding=(1, 2)),
        Text(""),
        Align.center(render_button(status.state)),
    ]
    if status.is_recording and stats is not None:
        parts.append(Align.center(render_level_meter(stats)))
    if hint:
        parts.append(Text(""))
        parts.append(Align.center(Text(hint, style="dim")))

    return Panel(Group(*parts), title="Voice Transcription", title_align="center")


class TranscriptionScreen:
    """Live terminal view that redraws whenever the controller publishes a status."""

    def __init__(self,
                 topic: str,
                 recorder=None,
                 hint: str = "",
                 console: Optional[Console] = None,
                 refresh_per_second: float = 8):
        """Initialize the screen.

        Args:
            topic: Pub/sub topic the controller publishes TranscriptionStatus on
            recorder: Capture device, polled for level statistics while recording
            hint: Controls line shown under the button
            console: Console to draw on
        """
        self.topic = topic
        self.recorder = recorder
        self.hint = hint
        self.console = console or Console()
        self.refresh_per_second = refresh_per_second

        self.status = TranscriptionStatus()
        self.live: Optional[Live] = None
        self._lock = threading.Lock()

    def on_status(self, status: TranscriptionStatus) -> None:
        """Pub/sub listener for controller status updates."""
        with self._lock:
            self.status = status
        self.refresh()

    def _stats(self) -> Optional[AudioStats]:
        if self.recorder is None or not self.status.is_recording:
            return None
        return self.recorder.get_recording_stats()

    def __rich__(self) -> Panel:
        with self._lock:
            status = self.status
        return render_status(status, self._stats(), self.hint)

    def refresh(self) -> None:
        if self.live is not None:
            self.live.refresh()

    def start(self) -> None:
        pub.subscribe(self.on_status, self.topic)
        self.live = Live(self, console=self.console,
                         refresh_per_second=self.refresh_per_second, transient=False)
        self.live.start()
        logger.info("Transcription screen started")

    def stop(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None
        pub.unsubscribe(self.on_status, self.topic)
        logger.info("Transcription screen stopped")
