"""Shared fixtures."""

import pytest

from fakes import FakeFeed, FakeMicrophone, FakeSpeaker, FakeSTT, FakeTTS, make_articles
from news_assistant.assistant.core import AssistantConfig, NewsAssistant
from news_assistant.config import Config, set_config

_ENV_VARS = (
    "NEWS_ASSISTANT_API_URL",
    "NEWS_ASSISTANT_TOKEN",
    "NEWS_ASSISTANT_CAPTURE_DIR",
    "NEWS_ASSISTANT_RSS_URL",
    "NEWS_ASSISTANT_GEMINI_MODEL",
    "GOOGLE_SPEECH_API_KEY",
    "GOOGLE_TTS_API",
    "GEMINI_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from environment-free defaults."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    set_config(Config())
    yield
    set_config(Config())


@pytest.fixture
def microphone():
    return FakeMicrophone()


@pytest.fixture
def speaker():
    return FakeSpeaker()


@pytest.fixture
def tts():
    return FakeTTS()


@pytest.fixture
def stt():
    return FakeSTT()


@pytest.fixture
def feed():
    return FakeFeed(
        make_articles(5, with_audio=[1]),
        audio={"https://audio.example/2.mp3": b"article-2-audio"},
    )


@pytest.fixture
def make_assistant(stt, tts, feed, microphone, speaker):
    """Build a NewsAssistant wired to the fakes; keyword args override config."""

    def _make(**overrides) -> NewsAssistant:
        values = dict(
            continuous_listening=False,
            capture_window_s=0.0,
            restart_delay_s=0.0,
            tts_cache_size=0,
        )
        values.update(overrides)
        return NewsAssistant(
            AssistantConfig(**values),
            stt=stt,
            tts=tts,
            feed=feed,
            microphone=microphone,
            speaker=speaker,
        )

    return _make
