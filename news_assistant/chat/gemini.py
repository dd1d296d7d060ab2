"""
Gemini chat client.

Posts text and optional JPEG images to ``models/{model}:generateContent``
and returns the best candidate's text.
"""

import base64
import logging
from typing import Any, Optional, Sequence, Union

import httpx

from news_assistant.errors import NetworkError, error_from_response

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response from AI."

ImageInput = Union[bytes, str]  # raw JPEG bytes or base64 text


class GeminiClient:
    """
    Minimal async client for Gemini generateContent.

    Usage:
        async with GeminiClient() as gemini:
            reply = await gemini.generate("Tóm tắt tin này", images=[jpeg_bytes])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        from news_assistant.config import get_config

        gemini = get_config().gemini
        self.api_key = api_key or gemini.api_key
        if not self.api_key:
            raise ValueError("Gemini API key not configured (GEMINI_API_KEY)")
        self.model = model or gemini.model
        self.base_url = (base_url or gemini.base_url).rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout or gemini.timeout, transport=transport)

    @staticmethod
    def build_parts(text: str = "", images: Sequence[ImageInput] = ()) -> list[dict[str, Any]]:
        """Text part first, then one inline JPEG part per image."""
        parts: list[dict[str, Any]] = []
        if text and text.strip():
            parts.append({"text": text.strip()})

        for image in images:
            data = base64.b64encode(image).decode("ascii") if isinstance(image, bytes) else image
            parts.append({"inline_data": {"mime_type": "image/jpeg", "data": data}})

        if not parts:
            parts.append({"text": ""})
        return parts

    async def generate(self, text: str = "", images: Sequence[ImageInput] = ()) -> str:
        """
        Ask Gemini.

        Raises:
            QuotaExceeded: HTTP 429
            NetworkError: Any other failure
        """
        body = {"contents": [{"parts": self.build_parts(text, images)}]}
        logger.debug("Gemini request: %d parts (%d images)", len(body["contents"][0]["parts"]), len(images))

        try:
            resp = await self._client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json=body,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"chat: {e}", service="chat") from e

        if resp.is_error:
            raise error_from_response(resp, "chat")

        return self.extract_text(resp.json())

    @staticmethod
    def extract_text(data: dict[str, Any]) -> str:
        """Text of the first part of the first candidate."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return NO_RESPONSE
        return text or NO_RESPONSE

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
