"""
Google Cloud Text-to-Speech backend.

Uses the REST ``text:synthesize`` endpoint with an API key. Responses carry
base64 ``audioContent`` which is decoded to raw bytes here.
"""

import base64
import logging
from typing import Any, Optional

import httpx

from news_assistant.errors import NetworkError, error_from_response
from news_assistant.tts.base import SynthesisResult, TTSBackend, Voice
from news_assistant.tts.registry import register_tts_backend

logger = logging.getLogger(__name__)

# Default voice per language prefix
DEFAULT_VOICES = {
    "vi": "vi-VN-Standard-A",
    "en": "en-US-Standard-C",
}

MIME_TYPES = {
    "MP3": "audio/mpeg",
    "LINEAR16": "audio/wav",
    "OGG_OPUS": "audio/ogg",
}


def default_voice(language: str) -> str:
    """Female standard voice for a language, English for anything unknown."""
    return DEFAULT_VOICES.get(language.split("-")[0].lower(), DEFAULT_VOICES["en"])


@register_tts_backend("google")
class GoogleTTSBackend(TTSBackend):
    """Google Text-to-Speech REST backend."""

    def __init__(self):
        super().__init__()
        self._base_url = "https://texttospeech.googleapis.com/v1"
        self._api_key: Optional[str] = None
        self.audio_encoding = "MP3"
        self.sample_rate = 24000

    def load(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        audio_encoding: str = "MP3",
        sample_rate: int = 24000,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        """
        Configure credentials and open the HTTP client.

        Args:
            api_key: Google API key (defaults to GOOGLE_TTS_API)
            base_url: API root
            audio_encoding: MP3, LINEAR16 or OGG_OPUS
            sample_rate: Output sample rate in Hz
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        from news_assistant.config import get_config

        google = get_config().google
        self._api_key = api_key or google.tts_api_key
        if not self._api_key:
            raise ValueError("Google TTS API key not configured (GOOGLE_TTS_API)")
        if audio_encoding not in MIME_TYPES:
            raise ValueError(f"Unsupported audio encoding: {audio_encoding}")

        self._base_url = (base_url or google.tts_url).rstrip("/")
        self.audio_encoding = audio_encoding
        self.sample_rate = sample_rate
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._loaded = True

    def build_request(
        self,
        text: str,
        language: str,
        speed: float,
        voice: Optional[str] = None,
    ) -> dict[str, Any]:
        """Request body for text:synthesize."""
        return {
            "input": {"text": text},
            "voice": {
                "languageCode": language,
                "name": voice or default_voice(language),
                "ssmlGender": "FEMALE",
            },
            "audioConfig": {
                "audioEncoding": self.audio_encoding,
                "speakingRate": speed,
                "pitch": 0.0,
                "volumeGainDb": 0.0,
                "sampleRateHertz": self.sample_rate,
            },
        }

    async def synthesize(
        self,
        text: str,
        language: str = "vi-VN",
        speed: float = 1.0,
        voice: Optional[str] = None,
    ) -> SynthesisResult:
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")
        if not text.strip():
            raise ValueError("Text is required")

        logger.debug("TTS request: %r (%s, speed=%s)", text[:100], language, speed)
        try:
            resp = await self._client.post(
                f"{self._base_url}/text:synthesize",
                params={"key": self._api_key},
                json=self.build_request(text, language, speed, voice),
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"tts: {e}", service="tts") from e

        if resp.is_error:
            raise error_from_response(resp, "tts")

        content = resp.json().get("audioContent")
        if not content:
            raise NetworkError("tts: No audio content returned", service="tts")

        audio = base64.b64decode(content)
        logger.debug("Synthesized %d bytes", len(audio))
        return SynthesisResult(
            audio=audio,
            mime_type=MIME_TYPES[self.audio_encoding],
            text=text,
            language=language,
            metadata={"voice": voice or default_voice(language)},
        )

    async def list_voices(self, language: str = "vi-VN") -> list[Voice]:
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")

        try:
            resp = await self._client.get(
                f"{self._base_url}/voices",
                params={"key": self._api_key, "languageCode": language},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"tts: {e}", service="tts") from e

        if resp.is_error:
            raise error_from_response(resp, "tts")

        voices = []
        for item in resp.json().get("voices") or []:
            codes = item.get("languageCodes") or [language]
            voices.append(
                Voice(
                    id=item["name"],
                    name=item["name"],
                    language=codes[0],
                    gender=item.get("ssmlGender", ""),
                    sample_rate=item.get("naturalSampleRateHertz", 24000),
                )
            )
        return voices

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info.update({
            "base_url": self._base_url,
            "audio_encoding": self.audio_encoding,
            "sample_rate": self.sample_rate,
        })
        return info
