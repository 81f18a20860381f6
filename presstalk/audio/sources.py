"""Turn whatever the capture device hands back into one contiguous byte sequence.

Native capture writes a WAV file and returns its path. In-memory ("web")
capture may return raw bytes, a blob reference that has to be fetched, or a
base64 string. Each platform gets one ``AudioSource``, picked at startup.
"""

import asyncio
import base64
import binascii
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import aiohttp

from ..exceptions import AudioExtractionError

logger = logging.getLogger(__name__)

BLOB_PREFIX = "blob:"
RECORDING_FILENAME = "recording.wav"

NATIVE = "native"
WEB = "web"


def decode_base64_audio(payload: str) -> bytes:
    """Decode a base64 audio payload, retrying once with corrected padding."""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed direct base64 decode, trying with padding: {e}")

    padded = payload + "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AudioExtractionError(f"Failed to decode audio data after padding: {e}") from e


async def fetch_blob(reference: str, timeout: Optional[aiohttp.ClientTimeout] = None) -> bytes:
    """Resolve a blob reference (``blob:<url>``) to the bytes behind it."""
    url = reference[len(BLOB_PREFIX):]
    session_kwargs = {"timeout": timeout} if timeout is not None else {}
    try:
        async with aiohttp.ClientSession(**session_kwargs) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise AudioExtractionError(
                        f"Failed to fetch audio data from blob URL: {response.status}")
                return await response.read()
    except AudioExtractionError:
        raise
    except asyncio.TimeoutError as e:
        raise AudioExtractionError(f"Timed out fetching blob URL: {url}") from e
    except (aiohttp.ClientError, OSError, ValueError) as e:
        raise AudioExtractionError(f"Failed to process blob URL: {e}") from e


async def extract_audio_bytes(payload: Any,
                              blob_timeout: Optional[aiohttp.ClientTimeout] = None) -> bytes:
    """Normalize a capture result into bytes.

    Raises:
        AudioExtractionError: for a missing, empty or unrecognised payload,
            a failed blob fetch, or undecodable base64.
    """
    if payload is None:
        raise AudioExtractionError("No audio data available")

    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)

    if isinstance(payload, list) and all(isinstance(b, int) for b in payload):
        try:
            return bytes(payload)
        except ValueError as e:
            raise AudioExtractionError(f"Invalid audio byte values: {e}") from e

    if isinstance(payload, str):
        if payload.startswith(BLOB_PREFIX):
            return await fetch_blob(payload, blob_timeout)
        if payload:
            return decode_base64_audio(payload)
        raise AudioExtractionError("Empty audio data string received")

    raise AudioExtractionError(f"Unexpected audio format: {type(payload).__name__}")


class AudioSource(ABC):
    """Where capture writes to, and how its result becomes bytes."""

    platform: str = ""

    @abstractmethod
    def target_path(self) -> Optional[str]:
        """Path handed to the capture device, or None for in-memory capture."""

    @abstractmethod
    async def read_bytes(self, stop_result: Any) -> bytes:
        """Return the recorded audio given what the capture device's stop() returned."""

    async def extract(self, stop_result: Any) -> bytes:
        audio_bytes = await self.read_bytes(stop_result)
        logger.info(f"Audio data size: {len(audio_bytes)} bytes")
        if not audio_bytes:
            raise AudioExtractionError("Recording produced no audio data")
        return audio_bytes


class NativeFileSource(AudioSource):
    """Capture to a temporary WAV file and read it back."""

    platform = NATIVE

    def __init__(self, temp_dir: Optional[str] = None):
        self.temp_dir = temp_dir or tempfile.gettempdir()

    def target_path(self) -> Optional[str]:
        os.makedirs(self.temp_dir, exist_ok=True)
        return str(Path(self.temp_dir) / RECORDING_FILENAME)

    async def read_bytes(self, stop_result: Any) -> bytes:
        if stop_result is None:
            raise AudioExtractionError("Recording failed: no audio data available")
        logger.info(f"Processing recorded audio file: {stop_result}")
        try:
            return Path(stop_result).read_bytes()
        except OSError as e:
            raise AudioExtractionError(f"Failed to read recording {stop_result}: {e}") from e


class WebBlobOrBase64Source(AudioSource):
    """Capture in memory; the result may be bytes, a blob reference or base64."""

    platform = WEB

    def __init__(self, blob_timeout: Optional[float] = None):
        """
        Args:
            blob_timeout: Total seconds allowed for fetching a blob reference,
                or None for aiohttp's default
        """
        self.blob_timeout = blob_timeout

    def target_path(self) -> Optional[str]:
        return None

    async def read_bytes(self, stop_result: Any) -> bytes:
        logger.info("Processing in-memory audio data...")
        timeout = aiohttp.ClientTimeout(total=self.blob_timeout) if self.blob_timeout else None
        return await extract_audio_bytes(stop_result, timeout)


def select_audio_source(platform: str, temp_dir: Optional[str] = None,
                        blob_timeout: Optional[float] = None) -> AudioSource:
    """Pick the AudioSource for the configured platform."""
    if platform == NATIVE:
        return NativeFileSource(temp_dir)
    if platform == WEB:
        return WebBlobOrBase64Source(blob_timeout)
    raise ValueError(f"Unknown audio platform: {platform!r} (expected '{NATIVE}' or '{WEB}')")
