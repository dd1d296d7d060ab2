"""Spoken prompts in Vietnamese and English."""

from datetime import date
from typing import Optional

MESSAGES: dict[str, dict[str, str]] = {
    "welcome": {
        "vi": "Tôi là trợ lý đọc tin tức, hôm nay {date} có các tin tức nóng sau:",
        "en": "I am your news reading assistant, today {date} we have the following hot news:",
    },
    "headline": {
        "vi": "Tin số {number}: {title}",
        "en": "News {number}: {title}",
    },
    "instructions": {
        "vi": "Bạn có thể nói tin số mấy để nghe, hoặc nói dừng, tiếp tục để điều khiển.",
        "en": "You can say news number to listen, or say stop, continue to control.",
    },
    "no_news": {
        "vi": "Hiện chưa có tin tức nào.",
        "en": "There is no news right now.",
    },
    "news_error": {
        "vi": "Không thể tải tin tức. Vui lòng thử lại.",
        "en": "Failed to load news. Please try again.",
    },
    "selected": {
        "vi": "Đã chọn tin số {number}: {title}",
        "en": "Selected news {number}: {title}",
    },
    "loading": {
        "vi": "Đang tải audio tin số {number}",
        "en": "Loading audio for news {number}",
    },
    "no_audio": {
        "vi": "Tin này không có file âm thanh, sẽ đọc nội dung bằng giọng nói",
        "en": "This news has no audio file, will read content with text-to-speech",
    },
    "playback_error": {
        "vi": "Không thể phát audio tin này. Sẽ đọc bằng giọng nói.",
        "en": "Cannot play audio for this news. Will read with text-to-speech.",
    },
    "finished": {
        "vi": "Đã phát xong tin này. Bạn có thể chọn tin khác.",
        "en": "Finished playing this news. You can select another news.",
    },
    "paused": {
        "vi": "Đã tạm dừng",
        "en": "Paused",
    },
    "continuing": {
        "vi": "Tiếp tục phát",
        "en": "Continuing playback",
    },
    "last_article": {
        "vi": "Đây là tin cuối cùng.",
        "en": "This is the last news.",
    },
    "first_article": {
        "vi": "Đây là tin đầu tiên.",
        "en": "This is the first news.",
    },
    "no_selection": {
        "vi": "Bạn chưa chọn tin nào. Hãy nói tin số mấy.",
        "en": "No news selected yet. Say a news number.",
    },
    "recording": {
        "vi": "Đang ghi âm... Nói tin số mấy hoặc lệnh điều khiển",
        "en": "Recording... Say news number or control command",
    },
    "permission_required": {
        "vi": "Cần quyền truy cập microphone để ghi âm",
        "en": "Microphone permission required for recording",
    },
    "recorder_error": {
        "vi": "Không thể ghi âm",
        "en": "Recording failed",
    },
    "no_speech": {
        "vi": "Không nhận diện được giọng nói. Vui lòng thử lại.",
        "en": "No speech detected. Please try again.",
    },
    "speech_error": {
        "vi": "Lỗi xử lý giọng nói. Vui lòng thử lại.",
        "en": "Speech processing error. Please try again.",
    },
    "quota_exceeded": {
        "vi": "Dịch vụ đang quá tải. Vui lòng thử lại sau.",
        "en": "API quota exceeded. Please try again later.",
    },
    "no_match": {
        "vi": "Không tìm thấy bài báo phù hợp. Thử nói tin số mấy.",
        "en": "No matching article found. Try saying news number.",
    },
}


def format_date(day: date, language: str) -> str:
    """Spoken date: "ngày 18 tháng 10 năm 2026" or "10/18/2026"."""
    if language == "vi":
        return f"ngày {day.day} tháng {day.month} năm {day.year}"
    return f"{day.month}/{day.day}/{day.year}"


def message(key: str, language: str = "vi", **kwargs) -> str:
    """
    Look up and format a prompt.

    Unknown languages fall back to English.
    """
    variants = MESSAGES[key]
    template = variants.get(language, variants["en"])
    return template.format(**kwargs)


def welcome(language: str = "vi", today: Optional[date] = None) -> str:
    return message("welcome", language, date=format_date(today or date.today(), language))
