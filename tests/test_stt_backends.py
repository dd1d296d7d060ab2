"""
Tests for STT backends.
"""

import asyncio
import base64
import json

import httpx
import numpy as np
import pytest

from news_assistant.assistant.audio_io import AudioBuffer
from news_assistant.errors import NetworkError, NoSpeechDetected, QuotaExceeded
from news_assistant.stt.base import TranscriptionResult, TranscriptionSegment
from news_assistant.stt.google import GoogleSTTBackend
from news_assistant.stt.registry import get_stt_backend, list_stt_backends
from news_assistant.stt.server import ServerSTTBackend


def _audio() -> AudioBuffer:
    return AudioBuffer(samples=np.arange(1600, dtype=np.int16), sample_rate=16000)


def _google(handler) -> GoogleSTTBackend:
    backend = GoogleSTTBackend()
    backend.load(api_key="test-key", transport=httpx.MockTransport(handler))
    return backend


def _server(handler, token="secret") -> ServerSTTBackend:
    backend = ServerSTTBackend()
    backend.load(base_url="http://backend.test/api", token=token, transport=httpx.MockTransport(handler))
    return backend


class TestSTTBase:
    """Test base STT classes."""

    def test_transcription_result(self):
        segments = [
            TranscriptionSegment(text="tin số 3", confidence=0.92, language="vi-VN"),
            TranscriptionSegment(text="dừng", confidence=0.5, language="vi-VN"),
        ]
        result = TranscriptionResult(
            text="tin số 3\ndừng",
            segments=segments,
            language="vi-VN",
            duration=3.0,
        )

        assert result.confidence == 0.92
        d = result.to_dict()
        assert d["text"] == "tin số 3\ndừng"
        assert len(d["segments"]) == 2

    def test_confidence_without_segments(self):
        result = TranscriptionResult(text="", segments=[], language="vi-VN", duration=0.0)
        assert result.confidence is None


class TestSTTRegistry:
    """Test STT backend registry."""

    def test_list_backends(self):
        names = [b["name"] for b in list_stt_backends()]
        assert "google" in names
        assert "server" in names

    def test_get_backend(self):
        backend = get_stt_backend("server")
        assert isinstance(backend, ServerSTTBackend)
        assert not backend.is_loaded()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="not found"):
            get_stt_backend("whisper")


class TestGoogleSTT:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="GOOGLE_SPEECH_API_KEY"):
            GoogleSTTBackend().load()

    def test_key_from_environment(self, monkeypatch):
        from news_assistant.config import Config, set_config

        monkeypatch.setenv("GOOGLE_SPEECH_API_KEY", "env-key")
        set_config(Config())
        backend = GoogleSTTBackend()
        backend.load(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        assert backend.is_loaded()

    def test_request_body(self):
        backend = GoogleSTTBackend()
        backend.load(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        audio = _audio()
        body = backend.build_request(audio, "vi-VN", ["en-US"])

        config = body["config"]
        assert config["encoding"] == "LINEAR16"
        assert config["sampleRateHertz"] == 16000
        assert config["languageCode"] == "vi-VN"
        assert config["alternativeLanguageCodes"] == ["en-US"]
        assert config["enableAutomaticPunctuation"] is True
        assert "tin số" in config["speechContexts"][0]["phrases"]
        assert base64.b64decode(body["audio"]["content"]) == audio.pcm_bytes()

    def test_transcribe(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"alternatives": [{"transcript": " tin số 3 ", "confidence": 0.91}]},
                        {"alternatives": [{"transcript": "dừng", "confidence": 0.8}], "languageCode": "vi-vn"},
                    ]
                },
            )

        result = asyncio.run(_google(handler).transcribe(_audio(), "vi-VN", ["en-US"]))

        assert result.text == "tin số 3\ndừng"
        assert result.confidence == pytest.approx(0.91)
        assert result.segments[1].language == "vi-vn"
        assert seen["url"].path.endswith("/speech:recognize")
        assert seen["url"].params["key"] == "test-key"
        assert seen["body"]["config"]["alternativeLanguageCodes"] == ["en-US"]

    def test_no_results_is_no_speech(self):
        backend = _google(lambda r: httpx.Response(200, json={}))
        with pytest.raises(NoSpeechDetected):
            asyncio.run(backend.transcribe(_audio()))

    def test_blank_alternatives_are_no_speech(self):
        data = {"results": [{"alternatives": [{"transcript": "  "}]}, {"alternatives": []}]}
        with pytest.raises(NoSpeechDetected):
            GoogleSTTBackend.parse_response(data, "vi-VN", 1.0)

    def test_quota(self):
        backend = _google(
            lambda r: httpx.Response(429, json={"error": {"message": "Quota exceeded"}})
        )
        with pytest.raises(QuotaExceeded) as exc:
            asyncio.run(backend.transcribe(_audio()))
        assert exc.value.status_code == 429
        assert "Quota exceeded" in str(exc.value)

    def test_server_error(self):
        backend = _google(lambda r: httpx.Response(500, text="boom"))
        with pytest.raises(NetworkError) as exc:
            asyncio.run(backend.transcribe(_audio()))
        assert exc.value.status_code == 500

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(NetworkError):
            asyncio.run(_google(handler).transcribe(_audio()))

    def test_transcribe_before_load(self):
        with pytest.raises(RuntimeError):
            asyncio.run(GoogleSTTBackend().transcribe(_audio()))


class TestServerSTT:
    def test_upload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.content
            return httpx.Response(200, json={"text": "tin số 2", "confidence": 0.88})

        result = asyncio.run(_server(handler).transcribe(_audio(), "vi-VN"))

        assert result.text == "tin số 2"
        assert result.confidence == pytest.approx(0.88)
        assert seen["path"] == "/api/speech"
        assert seen["auth"] == "Bearer secret"
        assert b"voice_command.wav" in seen["body"]
        assert b"RIFF" in seen["body"]

    def test_no_token_no_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"text": "dừng"})

        asyncio.run(_server(handler, token=None).transcribe(_audio()))
        assert seen["auth"] is None

    def test_empty_text_is_no_speech(self):
        backend = _server(lambda r: httpx.Response(200, json={"text": ""}))
        with pytest.raises(NoSpeechDetected):
            asyncio.run(backend.transcribe(_audio()))

    def test_no_speech_error_detail(self):
        backend = _server(lambda r: httpx.Response(400, json={"error": "No speech detected"}))
        with pytest.raises(NoSpeechDetected):
            asyncio.run(backend.transcribe(_audio()))

    def test_quota(self):
        backend = _server(lambda r: httpx.Response(429, json={"error": "Too many requests"}))
        with pytest.raises(QuotaExceeded):
            asyncio.run(backend.transcribe(_audio()))

    def test_other_error(self):
        backend = _server(lambda r: httpx.Response(502, json={"details": "upstream"}))
        with pytest.raises(NetworkError, match="upstream"):
            asyncio.run(backend.transcribe(_audio()))
