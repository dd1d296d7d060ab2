"""
Abstract base class for TTS backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Voice:
    """Voice information."""

    id: str
    name: str
    language: str
    gender: str = ""
    sample_rate: int = 24000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "language": self.language,
            "gender": self.gender,
            "sample_rate": self.sample_rate,
        }


@dataclass
class SynthesisResult:
    """Result from speech synthesis."""

    audio: bytes  # encoded audio (MP3, WAV, OGG)
    mime_type: str = "audio/mpeg"
    text: str = ""
    language: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.audio)

    def save(self, path: str) -> None:
        """Write the encoded audio to a file."""
        with open(path, "wb") as f:
            f.write(self.audio)


class TTSBackend(ABC):
    """Abstract base class for TTS backends."""

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
    async def synthesize(
        self,
        text: str,
        language: str = "vi-VN",
        speed: float = 1.0,
        voice: Optional[str] = None,
    ) -> SynthesisResult:
        """
        Generate speech from text.

        Args:
            text: Text to synthesize
            language: BCP-47 language code
            speed: Speaking rate (1.0 = normal)
            voice: Voice name, or None for the language default

        Returns:
            SynthesisResult with encoded audio

        Raises:
            QuotaExceeded: HTTP 429
            NetworkError: Transport failure or other HTTP error
        """
        pass

    @abstractmethod
    async def list_voices(self, language: str = "vi-VN") -> list[Voice]:
        """
        Get available voices for a language.

        Returns:
            List of Voice objects
        """
        pass

    def get_languages(self) -> list[str]:
        return ["vi-VN", "en-US"]

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
            "languages": self.get_languages(),
        }
