"""
App-backend TTS backend.

``POST /tts`` on the assistant's backend returns raw MP3 bytes;
``GET /tts/voices`` lists Google voices for a language.
"""

import logging
from typing import Any, Optional

import httpx

from news_assistant.errors import NetworkError, error_from_response
from news_assistant.tts.base import SynthesisResult, TTSBackend, Voice
from news_assistant.tts.registry import register_tts_backend

logger = logging.getLogger(__name__)


@register_tts_backend("server")
class ServerTTSBackend(TTSBackend):
    """TTS through the app backend's /tts endpoint."""

    def __init__(self):
        super().__init__()
        self._base_url = "http://localhost:5000/api"

    def load(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        from news_assistant.config import get_config

        api = get_config().api
        self._base_url = (base_url or api.base_url).rstrip("/")
        token = token or api.token

        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._loaded = True

    async def synthesize(
        self,
        text: str,
        language: str = "vi-VN",
        speed: float = 1.0,
        voice: Optional[str] = None,
    ) -> SynthesisResult:
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")

        payload = {"text": text, "language": language, "speed": speed, "voice": voice}
        try:
            resp = await self._client.post("/tts", json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"tts: {e}", service="tts") from e

        if resp.is_error:
            raise error_from_response(resp, "tts")

        if not resp.content:
            raise NetworkError("tts: Empty audio response", service="tts")

        return SynthesisResult(
            audio=resp.content,
            mime_type=resp.headers.get("content-type", "audio/mpeg"),
            text=text,
            language=language,
        )

    async def list_voices(self, language: str = "vi-VN") -> list[Voice]:
        if not self._loaded or self._client is None:
            raise RuntimeError("Backend not loaded. Call load() first.")

        try:
            resp = await self._client.get("/tts/voices", params={"languageCode": language})
        except httpx.HTTPError as e:
            raise NetworkError(f"tts: {e}", service="tts") from e

        if resp.is_error:
            raise error_from_response(resp, "tts")

        return [
            Voice(
                id=item["name"],
                name=item["name"],
                language=(item.get("languageCodes") or [language])[0],
                gender=item.get("ssmlGender", ""),
                sample_rate=item.get("naturalSampleRateHertz", 24000),
            )
            for item in resp.json().get("voices") or []
        ]

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info.update({"base_url": self._base_url, "type": "proxy"})
        return info
