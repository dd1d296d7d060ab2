"""
TTS (Text-to-Speech) backends.
"""

from news_assistant.tts.base import SynthesisResult, TTSBackend, Voice
from news_assistant.tts.registry import get_tts_backend, list_tts_backends, register_tts_backend

__all__ = [
    "TTSBackend",
    "SynthesisResult",
    "Voice",
    "register_tts_backend",
    "get_tts_backend",
    "list_tts_backends",
]
