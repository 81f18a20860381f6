"""Recording-and-transcription controller: one press-and-hold cycle at a time."""

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Optional

from pubsub import pub

from ..audio.sources import AudioSource
from ..exceptions import AudioExtractionError, PermissionDeniedError
from ..models.session import RecordConfig, RecordingSession
from ..models.transcription import TranscriptionResult
from ..models.ui import (
    ControllerState,
    TranscriptionStatus,
    IDLE_PROMPT,
    RECORDING_TEXT,
    PROCESSING_TEXT,
)
from ..transcription.base import AbstractTranscriptionBackend
from .permission_gate import PermissionGate

logger = logging.getLogger(__name__)

STATUS_TOPIC = "controller.status"


class RecordingController:
    """Drives Idle -> Recording -> Processing -> Idle and owns the status line.

    Gesture handlers are coroutines. They are serialized, so a release that
    arrives while the press is still being handled runs after it.
    """

    def __init__(
        self,
        recorder,
        source: AudioSource,
        gate: PermissionGate,
        backend: AbstractTranscriptionBackend,
        record_config: RecordConfig = RecordConfig(),
        settle_delay: float = 0.1,
        topic: str = STATUS_TOPIC,
        idle_text: str = IDLE_PROMPT,
    ):
        """Initialize the controller.

        Args:
            recorder: Capture device (has_permission/start/stop/dispose)
            source: Turns the recorder's stop() result into bytes
            gate: Permission gate consulted before every capture
            backend: Transcription backend
            record_config: Encoder settings for every capture
            settle_delay: Seconds to wait after releasing the device before reuse
            topic: Pub/sub topic status updates are published on
            idle_text: Status line shown before the first recording
        """
        self.recorder = recorder
        self.source = source
        self.gate = gate
        self.backend = backend
        self.record_config = record_config
        self.settle_delay = settle_delay
        self.topic = topic

        self.status = TranscriptionStatus(status_text=idle_text)
        self.session: Optional[RecordingSession] = None
        self.last_result: Optional[TranscriptionResult] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def state(self) -> ControllerState:
        return self.status.state

    @property
    def lock(self) -> asyncio.Lock:
        # Created on first use so it belongs to the running loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _set_status(self, state: ControllerState, text: Optional[str] = None) -> None:
        self.status.state = state
        if text is not None:
            self.status.status_text = text
        logger.debug(f"Status: {state.value} - {self.status.status_text!r}")
        pub.sendMessage(self.topic, status=dataclasses.replace(self.status))

    async def _run_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def initialize(self) -> bool:
        """Reset the capture device and run the permission gate once.

        Returns:
            True when recording is supported and permitted
        """
        logger.info("Initializing audio recorder...")
        await self._run_blocking(self.recorder.dispose)
        await asyncio.sleep(self.settle_delay)

        supported = await self._run_blocking(self.recorder.has_permission)
        logger.info(f"Audio recording supported: {supported}")
        if not supported:
            logger.error("Error initializing audio recorder: "
                         "Audio recording is not supported on this device")

        check = await self._run_blocking(self.gate.ensure)
        if not check.granted:
            self._set_status(ControllerState.IDLE, check.message)
        return supported and check.granted

    async def on_gesture_start(self) -> bool:
        """Handle press: begin a capture session if idle and permitted.

        Returns:
            True when recording started
        """
        if self.state is not ControllerState.IDLE or self.lock.locked():
            logger.warning(f"Ignoring gesture start while {self.state.value}")
            return False

        async with self.lock:
            try:
                await self._run_blocking(self.gate.require)

                logger.info("Starting recording...")
                path = self.source.target_path()
                await self._run_blocking(self.recorder.start, self.record_config, path)
            except PermissionDeniedError as e:
                logger.warning("Permissions not granted, not starting recording")
                self._set_status(ControllerState.IDLE, str(e))
                return False
            except Exception as e:
                logger.error(f"Error starting recording: {e}", exc_info=True)
                self._set_status(ControllerState.IDLE, f"Failed to start recording: {e}")
                return False

            self.session = RecordingSession(config=self.record_config, source_handle=path)
            self._set_status(ControllerState.RECORDING, RECORDING_TEXT)
            return True

    async def on_gesture_end(self) -> Optional[TranscriptionResult]:
        """Handle release: stop capture, extract the audio and transcribe it.

        Returns:
            The transcription result, or None when nothing was sent
        """
        async with self.lock:
            if self.state is not ControllerState.RECORDING:
                logger.warning("Attempted to stop recording when not recording")
                return None

            logger.info("Stopping recording...")
            self._set_status(ControllerState.PROCESSING, PROCESSING_TEXT)
            try:
                return await self._finish_session()
            finally:
                if self.session is not None:
                    self.session.is_active = False
                self.session = None
                self._set_status(ControllerState.IDLE)

    async def _finish_session(self) -> Optional[TranscriptionResult]:
        try:
            stop_result = await self._run_blocking(self.recorder.stop)
        except Exception as e:
            logger.error(f"Error stopping recording: {e}", exc_info=True)
            self.status.status_text = f"Error stopping recording: {e}"
            return None

        logger.info(f"Recording stopped. Result: {describe_stop_result(stop_result)}")
        try:
            audio = await self.source.extract(stop_result)
        except AudioExtractionError as e:
            logger.error(f"Error processing audio: {e}")
            self.status.status_text = f"Error processing audio: {e}"
            return None

        result = await self.backend.transcribe(audio)
        self.last_result = result
        self.status.status_text = result.text
        return result

    async def shutdown(self) -> None:
        """Release the capture device."""
        logger.info("Disposing audio recorder")
        await self._run_blocking(self.recorder.dispose)
        self.backend.cleanup()


def describe_stop_result(stop_result: Any) -> str:
    if isinstance(stop_result, (bytes, bytearray)):
        return f"{len(stop_result)} bytes"
    if isinstance(stop_result, str) and len(stop_result) > 80:
        return f"{stop_result[:77]}..."
    return repr(stop_result)
