"""
Voice assistant module for news-assistant.

Hands-free news reading: continuous listening, voice commands and spoken
replies over Google Speech-to-Text / Text-to-Speech.
"""

from news_assistant.assistant.core import AssistantConfig, NewsAssistant

__all__ = ["NewsAssistant", "AssistantConfig"]
