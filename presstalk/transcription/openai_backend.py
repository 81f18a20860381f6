"""OpenAI Whisper transcription backend."""

import asyncio
import time
import logging
from typing import Optional

import aiohttp

from .base import AbstractTranscriptionBackend
from ..config import API_KEY_ENV_VAR
from ..exceptions import ConfigurationMissingError, TranscriptionError
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.openai.com/v1/audio/transcriptions"
DEFAULT_MODEL = "whisper-1"

AUDIO_FILENAME = "audio.wav"
AUDIO_CONTENT_TYPE = "audio/wav"

MISSING_KEY_MESSAGE = f"Error: {API_KEY_ENV_VAR} not set in .env file."
CONNECTION_ERROR_MESSAGE = "Error: Could not connect to OpenAI API."
UNEXPECTED_RESPONSE_MESSAGE = "Error: Unexpected response from OpenAI API."


class OpenAITranscriptionBackend(AbstractTranscriptionBackend):
    """Sends a whole recording to the OpenAI audio transcription endpoint."""

    service_name = "OpenAI Whisper"

    def __init__(self,
                 api_key: Optional[str],
                 endpoint: str = DEFAULT_ENDPOINT,
                 model: str = DEFAULT_MODEL):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key; None is reported on every transcribe call
            endpoint: Transcription endpoint URL
            model: Model identifier sent in the ``model`` form field
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model

        logger.info(f"OpenAITranscriptionBackend initialized with model: {model}")

    def initialize(self) -> bool:
        if not self.api_key:
            logger.error(f"{API_KEY_ENV_VAR} is not set; transcription requests will be refused")
            return False
        return True

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """Transcribe audio, converting every failure into a displayable result."""
        start_time = time.time()
        try:
            text = await self._request_transcript(audio)
        except ConfigurationMissingError:
            return self._error_result(MISSING_KEY_MESSAGE, start_time)
        except TranscriptionError as e:
            logger.error(f"Transcription failed: {e}")
            if e.status_code is None:
                return self._error_result(UNEXPECTED_RESPONSE_MESSAGE, start_time)
            return self._error_result(f"Error transcribing audio: {e.status_code}",
                                      start_time, e.status_code)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"Error sending request: {e}", exc_info=True)
            return self._error_result(CONNECTION_ERROR_MESSAGE, start_time)
        except Exception as e:
            logger.error(f"Unexpected error during transcription: {e}", exc_info=True)
            return self._error_result(CONNECTION_ERROR_MESSAGE, start_time)

        processing_time = time.time() - start_time
        logger.info(f"Transcription received ({len(text)} chars, {processing_time:.3f}s)")
        return TranscriptionResult(
            text=text,
            status_code=200,
            processing_time=processing_time,
            service=self.service_name,
        )

    async def _request_transcript(self, audio: bytes) -> str:
        """Send the multipart request and return the transcript.

        Raises:
            ConfigurationMissingError: if no API key is configured
            TranscriptionError: on a non-200 status or an unusable body
        """
        if not self.api_key:
            raise ConfigurationMissingError(f"{API_KEY_ENV_VAR} not set")

        headers = {"Authorization": f"Bearer {self.api_key}"}

        form = aiohttp.FormData()
        form.add_field("model", self.model)
        form.add_field("file", audio, filename=AUDIO_FILENAME, content_type=AUDIO_CONTENT_TYPE)

        logger.info(f"Sending transcription request to {self.endpoint} ({len(audio)} bytes)...")
        async with aiohttp.ClientSession() as session:
            async with session.post(self.endpoint, headers=headers, data=form) as response:
                if response.status != 200:
                    error_text = await response.text(errors="replace")
                    logger.error(f"Error from OpenAI: {response.status}")
                    logger.error(f"Response body: {error_text}")
                    raise TranscriptionError(f"OpenAI API error: {response.status}",
                                             status_code=response.status)

                try:
                    result = await response.json(content_type=None)
                except ValueError as e:
                    raise TranscriptionError(f"Response was not JSON: {e}") from e

        if not isinstance(result, dict) or not isinstance(result.get("text"), str):
            raise TranscriptionError(f"Response has no 'text' field: {result!r}")
        return result["text"]

    def _error_result(self, message: str, start_time: float,
                      status_code: Optional[int] = None) -> TranscriptionResult:
        return TranscriptionResult(
            text=message,
            is_error=True,
            status_code=status_code,
            processing_time=time.time() - start_time,
            service=self.service_name,
        )

    def cleanup(self) -> None:
        """Nothing to release: a session is opened per request."""
        pass
