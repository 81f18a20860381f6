"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    service_name: str = ""

    @abstractmethod
    def initialize(self) -> bool:
        """Verify configuration.

        Returns:
            True if the backend is ready to send requests, False otherwise
        """
        pass

    @abstractmethod
    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """Transcribe a complete recording.

        Implementations never raise: failures come back as a result with
        ``is_error`` set and a displayable message in ``text``.

        Args:
            audio: WAV file contents

        Returns:
            TranscriptionResult with the transcript or an error message
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
