"""
Article session state and the article audio player.

ArticleSession holds the fetched articles, the selection and the playback
status. ArticlePlayer owns the one loaded article Sound; selecting an article
always unloads whatever was loaded before.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from news_assistant.assistant.audio_io import Sound, Speaker
from news_assistant.errors import IndexOutOfRange
from news_assistant.news.models import Article

logger = logging.getLogger(__name__)


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class ArticlePlayer:
    """
    Plays remote article audio.

    Args:
        speaker: Output device
        fetch: Coroutine downloading an audio URL to bytes
    """

    def __init__(self, speaker: Speaker, fetch: Callable[[str], Awaitable[bytes]]):
        self._speaker = speaker
        self._fetch = fetch
        self._sound: Optional[Sound] = None
        self.url: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._sound is not None

    @property
    def is_playing(self) -> bool:
        return self._sound is not None and self._sound.is_playing

    async def load(self, url: str) -> None:
        """Download and decode ``url``, replacing any loaded audio."""
        self.stop()
        data = await self._fetch(url)
        self._sound = self._speaker.load(data)
        self.url = url
        logger.debug("Loaded article audio %s (%d bytes)", url, len(data))

    def play(self) -> None:
        if self._sound is not None:
            self._sound.play()

    def pause(self) -> None:
        if self._sound is not None:
            self._sound.pause()

    def resume(self) -> None:
        if self._sound is not None:
            self._sound.resume()

    def stop(self) -> None:
        """Unload the current audio, if any."""
        sound = self._sound
        self._sound = None
        self.url = None
        if sound is not None:
            sound.unload()

    async def wait_finished(self) -> bool:
        """True if the loaded audio played to its natural end; finished audio is unloaded."""
        sound = self._sound
        if sound is None:
            return False
        finished = await sound.wait()
        if finished and sound is self._sound:
            self.stop()
        return finished


class ArticleSession:
    """
    Fetched articles, current selection and playback status.

    ``selected_index`` is None or a valid index into ``articles``; the status
    is PLAYING or PAUSED only while something is selected.
    """

    def __init__(self, player: Optional[ArticlePlayer] = None):
        self.player = player
        self.articles: list[Article] = []
        self.selected_index: Optional[int] = None
        self.playback_status = PlaybackStatus.IDLE

    def __len__(self) -> int:
        return len(self.articles)

    @property
    def selected(self) -> Optional[Article]:
        if self.selected_index is None:
            return None
        return self.articles[self.selected_index]

    @property
    def titles(self) -> list[str]:
        return [article.title for article in self.articles]

    def _stop_audio(self) -> None:
        if self.player is not None:
            self.player.stop()

    def set_articles(self, articles: Sequence[Article]) -> None:
        """Replace the article list and clear the selection."""
        self._stop_audio()
        self.articles = list(articles)
        self.selected_index = None
        self.playback_status = PlaybackStatus.IDLE

    def select(self, index: int) -> Article:
        """
        Select an article by zero-based index.

        Loaded audio is stopped first, even when the index is rejected.

        Raises:
            IndexOutOfRange: Index outside the article list
        """
        self._stop_audio()
        if not 0 <= index < len(self.articles):
            self.playback_status = PlaybackStatus.IDLE
            raise IndexOutOfRange(
                f"Article index {index} out of range (0..{len(self.articles) - 1})"
            )
        self.selected_index = index
        self.playback_status = PlaybackStatus.IDLE
        return self.articles[index]

    def advance(self) -> Optional[int]:
        """Index of the next article, or None when nothing follows."""
        if self.selected_index is None or self.selected_index >= len(self.articles) - 1:
            return None
        return self.selected_index + 1

    def retreat(self) -> Optional[int]:
        """Index of the previous article, or None at the start."""
        if self.selected_index is None or self.selected_index <= 0:
            return None
        return self.selected_index - 1

    def set_playback_status(self, status: PlaybackStatus) -> None:
        """
        Raises:
            ValueError: PLAYING or PAUSED with nothing selected
        """
        status = PlaybackStatus(status)
        if status != PlaybackStatus.IDLE and self.selected_index is None:
            raise ValueError(f"Cannot set {status.value} without a selected article")
        self.playback_status = status
