"""Tests for language helpers and spoken prompts."""

from datetime import date

import pytest

from news_assistant.assistant.prompts import MESSAGES, format_date, message, welcome
from news_assistant.lang import (
    alternative_language_codes,
    detect_speech_language,
    get_api_language,
    language_code,
)


@pytest.mark.parametrize(
    "language,expected",
    [("vi", "vi-VN"), ("en", "en-US"), ("fr", "en-US"), ("en-GB", "en-GB")],
)
def test_language_code(language, expected):
    assert language_code(language) == expected


def test_alternative_language_codes():
    assert alternative_language_codes("vi") == ["en-US"]
    assert alternative_language_codes("en-US") == ["vi-VN"]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Giá vàng hôm nay tăng mạnh", "vi-VN"),
        ("Gold prices rise sharply", "en-US"),
        ("2 + 2 bằng?", "vi-VN"),
        ("5 * 3 equal?", "en-US"),
        ("Thailand 2025", "en-US"),
    ],
)
def test_detect_speech_language(text, expected):
    assert detect_speech_language(text) == expected


def test_get_api_language():
    assert get_api_language("Thời tiết hôm nay") == "vi"
    assert get_api_language("What is the weather") == "en"
    assert get_api_language("What is this", ui_language="vi") == "vi"
    assert get_api_language("trong hình", ui_language="en") == "en"


class TestPrompts:
    def test_every_prompt_has_both_languages(self):
        for key, variants in MESSAGES.items():
            assert set(variants) == {"vi", "en"}, key

    def test_format_date(self):
        day = date(2026, 10, 18)
        assert format_date(day, "vi") == "ngày 18 tháng 10 năm 2026"
        assert format_date(day, "en") == "10/18/2026"

    def test_message_formatting(self):
        assert message("headline", "vi", number=2, title="Giá vàng") == "Tin số 2: Giá vàng"
        assert message("headline", "en", number=2, title="Gold") == "News 2: Gold"

    def test_unknown_language_falls_back_to_english(self):
        assert message("paused", "de") == "Paused"

    def test_welcome(self):
        text = welcome("vi", date(2026, 1, 2))
        assert "ngày 2 tháng 1 năm 2026" in text
