"""
Configuration and settings for News Assistant.

Service endpoints and credentials come from the environment; behaviour of the
voice assistant itself lives in ``AssistantConfig`` (assistant/core.py).
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field


def get_default_capture_dir() -> Path | None:
    """Directory for saved voice captures, if enabled."""
    value = os.environ.get("NEWS_ASSISTANT_CAPTURE_DIR")
    return Path(value) if value else None


class ApiConfig(BaseModel):
    """App backend (speech / tts / news proxy) configuration."""

    base_url: str = Field(
        default_factory=lambda: os.environ.get("NEWS_ASSISTANT_API_URL", "http://localhost:5000/api")
    )
    token: str | None = Field(default_factory=lambda: os.environ.get("NEWS_ASSISTANT_TOKEN"))
    timeout: float = Field(default=30.0)


class GoogleConfig(BaseModel):
    """Direct Google Cloud REST configuration."""

    speech_api_key: str | None = Field(
        default_factory=lambda: os.environ.get("GOOGLE_SPEECH_API_KEY")
    )
    tts_api_key: str | None = Field(default_factory=lambda: os.environ.get("GOOGLE_TTS_API"))
    speech_url: str = Field(default="https://speech.googleapis.com/v1p1beta1")
    tts_url: str = Field(default="https://texttospeech.googleapis.com/v1")
    timeout: float = Field(default=30.0)


class GeminiConfig(BaseModel):
    """Gemini generateContent configuration."""

    api_key: str | None = Field(default_factory=lambda: os.environ.get("GEMINI_API_KEY"))
    model: str = Field(
        default_factory=lambda: os.environ.get("NEWS_ASSISTANT_GEMINI_MODEL", "gemini-2.0-flash")
    )
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    timeout: float = Field(default=60.0)


class FeedConfig(BaseModel):
    """News feed configuration."""

    rss_url: str = Field(
        default_factory=lambda: os.environ.get(
            "NEWS_ASSISTANT_RSS_URL", "https://tuoitre.vn/rss/tin-moi-nhat.rss"
        )
    )
    limit: int = Field(default=5)
    timeout: float = Field(default=15.0)


class Config(BaseModel):
    """Main configuration."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    capture_dir: Path | None = Field(default_factory=get_default_capture_dir)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration."""
    global _config
    _config = config
