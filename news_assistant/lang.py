"""
Language helpers for speech and API requests.
"""

import re

_VIETNAMESE_CHARS = re.compile(
    r"[àáạảãâầấậẩẫăằắặẳẵèéẹẻẽêềếệểễìíịỉĩòóọỏõôồốộổỗơờớợởỡùúụủũưừứựửữỳýỵỷỹđ]",
    re.IGNORECASE,
)
_MATH_CHARS = re.compile(r"[0-9+\-*/=]")
_MATH_SUFFIX = {
    "en-US": re.compile(r"equal\?$", re.IGNORECASE),
    "vi-VN": re.compile(r"bằng\?$", re.IGNORECASE),
}
_IMAGE_QUESTIONS = ("trong hình", "in the image", "what is this")

LANGUAGE_CODES = {"vi": "vi-VN", "en": "en-US"}


def language_code(language: str) -> str:
    """Map a UI language ("vi"/"en") to a BCP-47 speech locale."""
    if "-" in language:
        return language
    return LANGUAGE_CODES.get(language, "en-US")


def alternative_language_codes(language: str) -> list[str]:
    """The other supported locales, offered to the recognizer as alternates."""
    primary = language_code(language)
    return [code for code in LANGUAGE_CODES.values() if code != primary]


def detect_speech_language(text: str) -> str:
    """
    Pick the TTS locale for a piece of text.

    Math expressions ending in "equal?" / "bằng?" are read in that language;
    otherwise any Vietnamese diacritic selects vi-VN.
    """
    if _MATH_CHARS.search(text):
        for code, pattern in _MATH_SUFFIX.items():
            if pattern.search(text):
                return code
    return "vi-VN" if _VIETNAMESE_CHARS.search(text) else "en-US"


def get_api_language(text: str, ui_language: str = "vi") -> str:
    """Short language tag ("vi"/"en") for chat requests."""
    lowered = text.lower()
    if any(phrase in lowered for phrase in _IMAGE_QUESTIONS):
        return "vi" if ui_language == "vi" else "en"
    return "vi" if _VIETNAMESE_CHARS.search(text) else "en"
