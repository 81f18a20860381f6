"""Microphone capture device backed by PyAudio."""

import io
import pyaudio
import wave
import logging
from threading import Thread, Event, Lock
from typing import Optional, List, Union
from datetime import datetime
import numpy as np

from ..models.audio import AudioStats
from ..models.session import RecordConfig
from ..exceptions import DeviceUnsupportedError

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # paInt16


def encode_wav(frames: List[bytes], sample_rate: int, channels: int) -> bytes:
    """Wrap raw 16-bit PCM frames in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        for chunk in frames:
            wf.writeframes(chunk)
    return buffer.getvalue()


class AudioRecorder:
    """Press-and-hold recorder: capture runs in a background thread between start() and stop()."""

    def __init__(self, chunk_size: int = 1024, format: int = pyaudio.paInt16):
        """Initialize the recorder.

        Args:
            chunk_size: Size of each audio chunk in samples
            format: Audio format (16-bit signed int)
        """
        self.chunk_size = chunk_size
        self.format = format

        self.config: Optional[RecordConfig] = None
        self.target_path: Optional[str] = None

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.error: Optional[Exception] = None

        # Captured audio
        self._frames: List[bytes] = []
        self._frames_lock = Lock()

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def has_permission(self) -> bool:
        """Return True when an input device is available to record from."""
        instance = pyaudio.PyAudio()
        try:
            instance.get_default_input_device_info()
            return True
        except (IOError, OSError) as e:
            logger.warning(f"No input device available: {e}")
            return False
        finally:
            instance.terminate()

    def start(self, config: RecordConfig, path: Optional[str] = None) -> None:
        """Start recording in a background thread.

        Args:
            config: Encoder settings
            path: WAV file to write on stop; None keeps the recording in memory
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return
        if config.encoder != "wav":
            raise DeviceUnsupportedError(f"Unsupported encoder: {config.encoder}")

        logger.info(f"Starting audio recording: {config.sample_rate}Hz, "
                    f"{config.num_channels} channel(s), {config.bit_rate} bps")
        self.config = config
        self.target_path = path
        self.stop_event.clear()
        self.error = None
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0
        with self._frames_lock:
            self._frames = []

        # Open the stream up front so device errors surface to the caller
        stream = self.__open_audio_stream(config)

        self.recording_thread = Thread(target=self._record_continuously, args=(stream,), daemon=True)
        self.recording_thread.name = "AudioRecorderThread"
        self.recording_thread.start()
        self.is_recording = True

    def stop(self) -> Optional[Union[str, bytes]]:
        """Stop recording and return the result.

        Returns:
            The file path when recording to a file, the WAV bytes when recording
            in memory, or None when nothing was recording.
        """
        if not self.is_recording:
            logger.warning("No recording in progress")
            return None

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

        if self.error is not None:
            logger.error(f"Recording thread failed: {self.error}")

        with self._frames_lock:
            frames = list(self._frames)
        wav_bytes = encode_wav(frames, self.config.sample_rate, self.config.num_channels)

        if self.target_path is None:
            return wav_bytes

        with open(self.target_path, 'wb') as f:
            f.write(wav_bytes)
        logger.info(f"Audio saved to {self.target_path}")
        return self.target_path

    def dispose(self) -> None:
        """Release the device, stopping any recording in progress."""
        if self.is_recording:
            self.stop_event.set()
            if self.recording_thread and self.recording_thread.is_alive():
                self.recording_thread.join(timeout=2.0)
            self.is_recording = False
        with self._frames_lock:
            self._frames = []
        logger.debug("Audio recorder disposed")

    def __open_audio_stream(self, config: RecordConfig) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            stream = self.pyaudio_instance.open(
                format=self.format,
                channels=config.num_channels,
                rate=config.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except (IOError, OSError):
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            raise
        logger.info(f"Audio stream opened: {config.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def __read_audio_chunk(self, stream: pyaudio.Stream) -> bytes:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1

        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            level = float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0
            self.peak_level = max(self.peak_level, level)
        return audio_chunk

    def _record_continuously(self, stream: pyaudio.Stream) -> None:
        """Internal method: recording loop in background thread."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self.__read_audio_chunk(stream)
                with self._frames_lock:
                    self._frames.append(audio_chunk)
        except (IOError, OSError) as e:
            self.error = e
        finally:
            stream.stop_stream()
            stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.config.sample_rate if self.config else 0,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if self.is_recording:
            self.dispose()
