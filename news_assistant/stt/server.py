"""
App-backend STT backend.

Uploads the capture to the assistant's own backend (``POST /speech``), which
converts it and forwards it to Google Speech-to-Text. The backend answers
``{"text": ..., "confidence": ...}`` on success.
"""

import logging
from typing import Any, Optional

import httpx

from news_assistant.assistant.audio_io import AudioBuffer
from news_assistant.errors import (
    NetworkError,
    NoSpeechDetected,
    error_from_response,
)
from news_assistant.stt.base import STTBackend, TranscriptionResult, TranscriptionSegment
from news_assistant.stt.registry import register_stt_backend

logger = logging.getLogger(__name__)

# Error details the backend uses when the recognizer returned nothing
_NO_SPEECH_MARKERS = ("no speech detected", "empty transcription")


@register_stt_backend("server")
class ServerSTTBackend(STTBackend):
    """STT through the app backend's /speech endpoint."""

    def __init__(self):
        super().__init__()
        self._base_url = "http://localhost:5000/api"
        self._token: Optional[str] = None

    def load(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        """
        Configure the backend URL and bearer token.

        Args:
            base_url: App backend root (defaults to NEWS_ASSISTANT_API_URL)
            token: Bearer token (defaults to NEWS_ASSISTANT_TOKEN)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        from news_assistant.config import get_config

        api = get_config().api
        self._base_url = (base_url or api.base_url).rstrip("/")
        self._token = token or api.token

        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._loaded = True

    async def transcribe(
        self,
        audio: AudioBuffer,
        language: str = "vi-VN",
        alternative_languages: Optional[list[str]] = None,
    ) -> TranscriptionResult:
        """
        Upload audio and return the backend's transcript.

        The backend picks its own alternate languages; ``alternative_languages``
        is accepted for interface compatibility.
        """
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")

        files = {"audio": ("voice_command.wav", audio.to_wav(), "audio/wav")}
        data = {"language": language}
        try:
            resp = await self._client.post("/speech", files=files, data=data)
        except httpx.HTTPError as e:
            raise NetworkError(f"stt: {e}", service="stt") from e

        if resp.is_error:
            error = error_from_response(resp, "stt")
            if any(marker in str(error).lower() for marker in _NO_SPEECH_MARKERS):
                raise NoSpeechDetected(str(error)) from error
            raise error

        result = resp.json()
        text = (result.get("text") or "").strip()
        if not text:
            raise NoSpeechDetected("Empty transcription returned")

        segment = TranscriptionSegment(
            text=text,
            confidence=float(result.get("confidence") or 0.0),
            language=language,
        )
        return TranscriptionResult(
            text=text,
            segments=[segment],
            language=language,
            duration=audio.duration,
            metadata={"backend": "server"},
        )

    def get_languages(self) -> list[str]:
        return ["vi-VN", "en-US"]

    def get_info(self) -> dict[str, Any]:
        """Get backend information."""
        info = super().get_info()
        info.update({"base_url": self._base_url, "type": "proxy"})
        return info
