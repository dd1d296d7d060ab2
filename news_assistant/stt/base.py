"""
Abstract base class for STT backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from news_assistant.assistant.audio_io import AudioBuffer


@dataclass
class TranscriptionSegment:
    """One recognized result segment."""

    text: str
    confidence: float = 0.0  # Informational only, never gates acceptance
    language: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "confidence": self.confidence,
            "language": self.language,
        }


@dataclass
class TranscriptionResult:
    """Result from speech transcription."""

    text: str  # Full transcription
    segments: list[TranscriptionSegment]
    language: str  # Requested primary language
    duration: float  # Audio duration in seconds
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def confidence(self) -> Optional[float]:
        """Confidence of the first segment, if the service reported one."""
        if not self.segments:
            return None
        return self.segments[0].confidence

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "segments": [s.to_dict() for s in self.segments],
            "language": self.language,
            "duration": self.duration,
            "metadata": self.metadata,
        }


class STTBackend(ABC):
    """Abstract base class for STT backends."""

    name: str = "base"

    def __init__(self):
        """Initialize the backend."""
        self._loaded = False
        self._client = None

    @abstractmethod
    def load(self, **kwargs) -> None:
        """
        Prepare the backend (credentials, HTTP client).

        Args:
            **kwargs: Backend-specific options
        """
        pass

    @abstractmethod
    async def transcribe(
        self,
        audio: "AudioBuffer",
        language: str = "vi-VN",
        alternative_languages: Optional[list[str]] = None,
    ) -> TranscriptionResult:
        """
        Transcribe a captured audio buffer.

        Args:
            audio: Captured audio (int16 PCM)
            language: Primary language hint (e.g. "vi-VN")
            alternative_languages: Extra locales the recognizer may pick

        Returns:
            TranscriptionResult with text and segments

        Raises:
            NoSpeechDetected: Zero segments or blank transcript
            QuotaExceeded: HTTP 429
            NetworkError: Transport failure or other HTTP error
        """
        pass

    @abstractmethod
    def get_languages(self) -> list[str]:
        """
        Get supported languages.

        Returns:
            List of language codes
        """
        pass

    def is_loaded(self) -> bool:
        """Check if backend is ready."""
        return self._loaded

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._loaded = False

    def get_info(self) -> dict[str, Any]:
        """
        Get backend information.

        Returns:
            Dictionary with backend info
        """
        return {
            "name": self.name,
            "loaded": self._loaded,
        }
