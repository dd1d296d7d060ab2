"""
Google Cloud Speech-to-Text backend.

Calls the REST ``speech:recognize`` endpoint directly with an API key. The
v1p1beta1 API is used because it accepts ``alternativeLanguageCodes``.
"""

import base64
import logging
from typing import Any, Optional

import httpx

from news_assistant.assistant.audio_io import AudioBuffer
from news_assistant.errors import NetworkError, NoSpeechDetected, error_from_response
from news_assistant.stt.base import STTBackend, TranscriptionResult, TranscriptionSegment
from news_assistant.stt.registry import register_stt_backend

logger = logging.getLogger(__name__)

# Phrases the recognizer should favour
DEFAULT_PHRASES = ["hello", "hi", "xin chào", "tạm biệt", "tin số", "bài số", "dừng", "tiếp tục"]


@register_stt_backend("google")
class GoogleSTTBackend(STTBackend):
    """Google Speech-to-Text REST backend."""

    def __init__(self):
        super().__init__()
        self._base_url = "https://speech.googleapis.com/v1p1beta1"
        self._api_key: Optional[str] = None
        self._model = "default"
        self._phrases = list(DEFAULT_PHRASES)

    def load(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "default",
        phrases: Optional[list[str]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        """
        Configure credentials and open the HTTP client.

        Args:
            api_key: Google API key (defaults to GOOGLE_SPEECH_API_KEY)
            base_url: API root, e.g. https://speech.googleapis.com/v1p1beta1
            model: Recognition model name
            phrases: Speech context phrases
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        from news_assistant.config import get_config

        google = get_config().google
        self._api_key = api_key or google.speech_api_key
        if not self._api_key:
            raise ValueError("Google Speech API key not configured (GOOGLE_SPEECH_API_KEY)")

        self._base_url = (base_url or google.speech_url).rstrip("/")
        self._model = model
        if phrases is not None:
            self._phrases = list(phrases)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._loaded = True

    def build_request(
        self,
        audio: AudioBuffer,
        language: str,
        alternative_languages: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Request body for speech:recognize."""
        config: dict[str, Any] = {
            "encoding": "LINEAR16",
            "sampleRateHertz": audio.sample_rate,
            "languageCode": language,
            "model": self._model,
            "enableAutomaticPunctuation": True,
            "audioChannelCount": 1,
            "profanityFilter": False,
        }
        if alternative_languages:
            config["alternativeLanguageCodes"] = list(alternative_languages)
        if self._phrases:
            config["speechContexts"] = [{"phrases": self._phrases}]

        return {
            "config": config,
            "audio": {"content": base64.b64encode(audio.pcm_bytes()).decode("ascii")},
        }

    async def transcribe(
        self,
        audio: AudioBuffer,
        language: str = "vi-VN",
        alternative_languages: Optional[list[str]] = None,
    ) -> TranscriptionResult:
        """
        Transcribe audio via Google Speech-to-Text.

        Args:
            audio: Captured audio (int16 PCM)
            language: Primary language code
            alternative_languages: Alternate language codes
        """
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")

        body = self.build_request(audio, language, alternative_languages)
        try:
            resp = await self._client.post(
                f"{self._base_url}/speech:recognize",
                params={"key": self._api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"stt: {e}", service="stt") from e

        if resp.is_error:
            raise error_from_response(resp, "stt")

        return self.parse_response(resp.json(), language, audio.duration)

    @staticmethod
    def parse_response(data: dict, language: str, duration: float) -> TranscriptionResult:
        """Turn a recognize response into a TranscriptionResult."""
        segments = []
        for result in data.get("results") or []:
            alternatives = result.get("alternatives") or []
            if not alternatives:
                continue
            best = alternatives[0]
            transcript = (best.get("transcript") or "").strip()
            if not transcript:
                continue
            segments.append(
                TranscriptionSegment(
                    text=transcript,
                    confidence=float(best.get("confidence", 0.0)),
                    language=result.get("languageCode", language),
                )
            )
            logger.debug("Transcript: %r (confidence: %s)", transcript, best.get("confidence"))

        if not segments:
            raise NoSpeechDetected("No speech detected in the audio")

        return TranscriptionResult(
            text="\n".join(s.text for s in segments),
            segments=segments,
            language=language,
            duration=duration,
            metadata={"backend": "google", "total_billed_time": data.get("totalBilledTime")},
        )

    def get_languages(self) -> list[str]:
        """Languages the assistant's command table understands."""
        return ["vi-VN", "en-US"]

    def get_info(self) -> dict[str, Any]:
        """Get backend information."""
        info = super().get_info()
        info.update({"base_url": self._base_url, "model": self._model, "type": "remote"})
        return info
