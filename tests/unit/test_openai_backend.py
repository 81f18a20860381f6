"""Unit tests for the OpenAI transcription backend."""

import pytest
from unittest.mock import patch

from presstalk.transcription.openai_backend import (
    OpenAITranscriptionBackend,
    CONNECTION_ERROR_MESSAGE,
    MISSING_KEY_MESSAGE,
    UNEXPECTED_RESPONSE_MESSAGE,
)


@pytest.mark.unit
class TestOpenAITranscriptionBackend:
    """Request shape and error conversion."""

    def test_initialize_requires_key(self):
        assert OpenAITranscriptionBackend(api_key="sk-test").initialize() is True
        assert OpenAITranscriptionBackend(api_key=None).initialize() is False

    @pytest.mark.asyncio
    async def test_transcript_returned_exactly(self, transcription_endpoint, wav_bytes):
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.text == "hello world"
        assert result.is_error is False
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_multipart_request_shape(self, transcription_endpoint, wav_bytes):
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        await backend.transcribe(wav_bytes)

        assert len(transcription_endpoint.requests) == 1
        request = transcription_endpoint.requests[0]
        assert request["authorization"] == "Bearer sk-test"
        assert request["content_type"] == "multipart/form-data"
        assert request["model"] == "whisper-1"
        assert request["filename"] == "audio.wav"
        assert request["file_content_type"] == "audio/wav"
        assert request["content"] == wav_bytes

    @pytest.mark.asyncio
    async def test_custom_model(self, transcription_endpoint, wav_bytes):
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url,
                                             model="gpt-4o-transcribe")

        await backend.transcribe(wav_bytes)

        assert transcription_endpoint.requests[0]["model"] == "gpt-4o-transcribe"

    @pytest.mark.asyncio
    async def test_zero_length_audio_still_sent(self, transcription_endpoint):
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        await backend.transcribe(b"")

        assert transcription_endpoint.requests[0]["content"] == b""

    @pytest.mark.asyncio
    async def test_server_error(self, transcription_endpoint, wav_bytes):
        transcription_endpoint.status = 500
        transcription_endpoint.body = {"error": {"message": "boom"}, "text": "hello world"}
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.is_error is True
        assert result.status_code == 500
        assert "500" in result.text
        assert "hello world" not in result.text

    @pytest.mark.asyncio
    async def test_unauthorized(self, transcription_endpoint, wav_bytes):
        transcription_endpoint.status = 401
        transcription_endpoint.body = "Incorrect API key provided"
        backend = OpenAITranscriptionBackend(api_key="sk-wrong", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.text == "Error transcribing audio: 401"

    @pytest.mark.asyncio
    async def test_success_without_text_field(self, transcription_endpoint, wav_bytes):
        transcription_endpoint.body = {"transcript": "hello world"}
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.is_error is True
        assert result.text == UNEXPECTED_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_success_with_non_json_body(self, transcription_endpoint, wav_bytes):
        transcription_endpoint.body = "hello world"
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.text == UNEXPECTED_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_request(self, transcription_endpoint, wav_bytes):
        backend = OpenAITranscriptionBackend(api_key=None, endpoint=transcription_endpoint.url)

        with patch("aiohttp.ClientSession") as session_class:
            result = await backend.transcribe(wav_bytes)

        session_class.assert_not_called()
        assert transcription_endpoint.requests == []
        assert result.is_error is True
        assert result.text == MISSING_KEY_MESSAGE
        assert "OPENAI_API_KEY" in result.text

    @pytest.mark.asyncio
    async def test_connection_failure(self, wav_bytes):
        # Nothing listens on port 1
        backend = OpenAITranscriptionBackend(api_key="sk-test",
                                             endpoint="http://127.0.0.1:1/v1/audio/transcriptions")

        result = await backend.transcribe(wav_bytes)

        assert result.is_error is True
        assert result.status_code is None
        assert result.text == CONNECTION_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_server_error_with_undecodable_body(self, transcription_endpoint, wav_bytes):
        transcription_endpoint.status = 500
        transcription_endpoint.body = b"\xff\xfe\x00garbage"
        backend = OpenAITranscriptionBackend(api_key="sk-test", endpoint=transcription_endpoint.url)

        result = await backend.transcribe(wav_bytes)

        assert result.is_error is True
        assert result.status_code == 500
        assert result.text == "Error transcribing audio: 500"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_connection_error(self, wav_bytes):
        backend = OpenAITranscriptionBackend(api_key="sk-test")

        with patch.object(backend, "_request_transcript", side_effect=RuntimeError("boom")):
            result = await backend.transcribe(wav_bytes)

        assert result.is_error is True
        assert result.text == CONNECTION_ERROR_MESSAGE
