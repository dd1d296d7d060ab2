"""Tests for the Gemini chat client."""

import asyncio
import base64
import json

import httpx
import pytest

from news_assistant.chat.gemini import NO_RESPONSE, GeminiClient
from news_assistant.errors import NetworkError, QuotaExceeded


def _client(handler) -> GeminiClient:
    return GeminiClient(api_key="gem-key", model="gemini-test", transport=httpx.MockTransport(handler))


def _reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_requires_api_key():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        GeminiClient()


def test_build_parts_text_then_images():
    parts = GeminiClient.build_parts("  Trong hình có gì? ", [b"\xff\xd8jpeg", "YWJj"])
    assert parts[0] == {"text": "Trong hình có gì?"}
    assert parts[1]["inline_data"]["mime_type"] == "image/jpeg"
    assert base64.b64decode(parts[1]["inline_data"]["data"]) == b"\xff\xd8jpeg"
    assert parts[2]["inline_data"]["data"] == "YWJj"


def test_build_parts_empty():
    assert GeminiClient.build_parts() == [{"text": ""}]


def test_generate():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["key"] = request.url.params["key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("Xin chào!"))

    reply = asyncio.run(_client(handler).generate("Chào bạn"))

    assert reply == "Xin chào!"
    assert seen["path"].endswith("/models/gemini-test:generateContent")
    assert seen["key"] == "gem-key"
    assert seen["body"] == {"contents": [{"parts": [{"text": "Chào bạn"}]}]}


@pytest.mark.parametrize(
    "data",
    [{}, {"candidates": []}, {"candidates": [{"content": {"parts": []}}]}, _reply("")],
)
def test_extract_text_fallback(data):
    assert GeminiClient.extract_text(data) == NO_RESPONSE


def test_quota():
    client = _client(lambda r: httpx.Response(429, json={"error": {"message": "Resource exhausted"}}))
    with pytest.raises(QuotaExceeded, match="Resource exhausted"):
        asyncio.run(client.generate("hi"))


def test_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkError):
        asyncio.run(_client(handler).generate("hi"))


def test_context_manager_closes():
    async def run():
        async with _client(lambda r: httpx.Response(200, json=_reply("ok"))) as gemini:
            reply = await gemini.generate("hi")
        return reply, gemini._client.is_closed

    assert asyncio.run(run()) == ("ok", True)
