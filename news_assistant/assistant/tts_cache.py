"""LRU cache for synthesized phrases, so repeated acknowledgements skip the TTS call."""

import hashlib
from collections import OrderedDict
from typing import Optional

from news_assistant.tts.base import SynthesisResult


class TTSCache:
    """LRU cache for synthesized audio clips, keyed by (text, language, speed)."""

    def __init__(self, max_entries: int = 64, max_text_len: int = 120):
        self._max_entries = max_entries
        self._max_text_len = max_text_len
        self._cache: OrderedDict[str, SynthesisResult] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(text: str, language: str, speed: float) -> str:
        raw = f"{text}|{language}|{speed:.2f}"
        return hashlib.md5(raw.encode()).hexdigest()

    def __len__(self) -> int:
        return len(self._cache)

    def get(self, text: str, language: str, speed: float = 1.0) -> Optional[SynthesisResult]:
        if len(text) > self._max_text_len:
            return None
        key = self._key(text, language, speed)
        if key in self._cache:
            self._cache.move_to_end(key)
            self.hits += 1
            return self._cache[key]
        self.misses += 1
        return None

    def put(self, text: str, language: str, speed: float, result: SynthesisResult) -> None:
        if len(text) > self._max_text_len:
            return
        key = self._key(text, language, speed)
        self._cache[key] = result
        self._cache.move_to_end(key)
        while len(self._cache) > self._max_entries:
            self._cache.popitem(last=False)

    def clear(self) -> None:
        self._cache.clear()
