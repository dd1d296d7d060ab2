"""
Generative chat.
"""

from news_assistant.chat.gemini import GeminiClient

__all__ = ["GeminiClient"]
