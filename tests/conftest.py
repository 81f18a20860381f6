"""Pytest configuration and fixtures for PressTalk tests."""

import pytest
import pytest_asyncio
import asyncio
import tempfile
import time
import logging
from typing import Any, Dict, List, Optional
from unittest.mock import Mock, patch
import numpy as np

from aiohttp import web
from aiohttp.test_utils import TestServer

from presstalk.audio.capture import encode_wav
from presstalk.models.permissions import Permission, PermissionStatus
from presstalk.models.transcription import TranscriptionResult
from presstalk.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests that wire several components together")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """1024 samples of a 440 Hz sine wave at 44.1 kHz, 16-bit, at half scale."""
    sample_rate = 44100
    t = np.arange(1024) / sample_rate
    wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def wav_bytes(sample_audio_chunk):
    """A short mono WAV file."""
    return encode_wav([sample_audio_chunk] * 4, 44100, 1)


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read_chunk(*args, **kwargs):
            # Pace reads roughly like a real device
            time.sleep(0.005)
            return sample_audio_chunk

        mock_stream.read.side_effect = read_chunk
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_sample_size.return_value = 2
        mock_pyaudio_instance.get_default_input_device_info.return_value = {"name": "Mock Mic"}

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


class FakeRecorder:
    """Capture device double: records calls and returns a canned stop() result."""

    def __init__(self, stop_result: Any = b"RIFF-fake-audio", permission: bool = True,
                 start_error: Optional[Exception] = None):
        self.stop_result = stop_result
        self.permission = permission
        self.start_error = start_error
        self.is_recording = False
        self.start_calls: List[Dict[str, Any]] = []
        self.stop_calls = 0
        self.dispose_calls = 0

    def has_permission(self) -> bool:
        return self.permission

    def start(self, config, path=None) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.start_calls.append({"config": config, "path": path})
        self.is_recording = True

    def stop(self):
        self.stop_calls += 1
        was_recording = self.is_recording
        self.is_recording = False
        return self.stop_result if was_recording else None

    def dispose(self) -> None:
        self.dispose_calls += 1
        self.is_recording = False


class FakeBackend(AbstractTranscriptionBackend):
    """Transcription backend double that counts the audio it is sent."""

    service_name = "fake"

    def __init__(self, text: str = "hello world", is_error: bool = False):
        self.text = text
        self.is_error = is_error
        self.received: List[bytes] = []
        self.cleaned_up = False

    def initialize(self) -> bool:
        return True

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        self.received.append(audio)
        return TranscriptionResult(text=self.text, is_error=self.is_error, service=self.service_name)

    def cleanup(self) -> None:
        self.cleaned_up = True


class FakePermissionProvider:
    """Permission API double with fixed statuses before and after a request."""

    def __init__(self, initial: Optional[Dict[Permission, PermissionStatus]] = None,
                 after_request: Optional[Dict[Permission, PermissionStatus]] = None):
        granted = {p: PermissionStatus.GRANTED for p in Permission}
        self.initial = initial or granted
        self.after_request = after_request or self.initial
        self.requested = False
        self.settings_opened = 0

    def status(self, permission: Permission) -> PermissionStatus:
        statuses = self.after_request if self.requested else self.initial
        return statuses[permission]

    def request(self, permissions):
        self.requested = True
        return {p: self.after_request[p] for p in permissions}

    def open_settings(self) -> None:
        self.settings_opened += 1


@pytest.fixture
def fake_recorder():
    return FakeRecorder()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_provider():
    return FakePermissionProvider()


class FakeTranscriptionEndpoint:
    """In-process stand-in for the transcription API and for blob URLs."""

    TRANSCRIPTION_PATH = "/v1/audio/transcriptions"

    def __init__(self):
        self.status = 200
        self.body: Any = {"text": "hello world"}
        self.requests: List[Dict[str, Any]] = []
        self.blobs: Dict[str, bytes] = {}
        self.blob_delay = 0.0
        self.url = ""
        self.base_url = ""

    async def handle_transcription(self, request: web.Request) -> web.Response:
        form = await request.post()
        file_field = form.get("file")
        self.requests.append({
            "authorization": request.headers.get("Authorization"),
            "content_type": request.content_type,
            "model": form.get("model"),
            "filename": getattr(file_field, "filename", None),
            "file_content_type": getattr(file_field, "content_type", None),
            "content": file_field.file.read() if file_field is not None else None,
        })
        if isinstance(self.body, bytes):
            return web.Response(body=self.body, status=self.status,
                                content_type="application/octet-stream")
        if isinstance(self.body, (dict, list)):
            return web.json_response(self.body, status=self.status)
        return web.Response(text=str(self.body), status=self.status)

    async def handle_blob(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if self.blob_delay:
            await asyncio.sleep(self.blob_delay)
        if name not in self.blobs:
            return web.Response(status=404)
        return web.Response(body=self.blobs[name], content_type="audio/wav")

    def blob_reference(self, name: str) -> str:
        return f"blob:{self.base_url}/blob/{name}"


@pytest_asyncio.fixture
async def transcription_endpoint():
    """A running fake transcription API."""
    endpoint = FakeTranscriptionEndpoint()
    app = web.Application()
    app.router.add_post(FakeTranscriptionEndpoint.TRANSCRIPTION_PATH, endpoint.handle_transcription)
    app.router.add_get("/blob/{name}", endpoint.handle_blob)

    async with TestServer(app) as server:
        endpoint.base_url = str(server.make_url("")).rstrip("/")
        endpoint.url = str(server.make_url(FakeTranscriptionEndpoint.TRANSCRIPTION_PATH))
        yield endpoint


@pytest.fixture
def recorder_factory():
    return FakeRecorder


@pytest.fixture
def backend_factory():
    return FakeBackend


@pytest.fixture
def provider_factory():
    return FakePermissionProvider
