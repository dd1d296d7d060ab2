"""
Spoken-output queue.

Every component that wants the assistant to say something goes through one
PlaybackQueue, so utterances are played strictly one after another. A single
drain task pops requests in FIFO order, synthesizes each one, plays it to the
end (or until stopped/skipped) and then resolves that request's future.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from news_assistant.assistant.audio_io import Sound, Speaker
from news_assistant.assistant.tts_cache import TTSCache
from news_assistant.tts.base import SynthesisResult, TTSBackend

logger = logging.getLogger(__name__)


@dataclass
class PlaybackRequest:
    """One utterance to speak."""

    text: str
    language: str = "vi-VN"
    speed: float = 1.0


@dataclass
class _QueueItem:
    request: PlaybackRequest
    future: asyncio.Future
    generation: int
    skipped: bool = False
    sound: Optional[Sound] = field(default=None, repr=False)


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


class PlaybackQueue:
    """
    Serializes spoken output.

    Usage:
        queue = PlaybackQueue(tts, speaker)
        await queue.enqueue(PlaybackRequest("Xin chào"))
        await queue.say("Đã tạm dừng", "vi-VN")

    ``enqueue`` futures always resolve: after natural completion, after
    stop()/skip(), or after the item failed (the failure is logged and the
    queue moves on).
    """

    def __init__(
        self,
        tts: TTSBackend,
        speaker: Speaker,
        cache: Optional[TTSCache] = None,
    ):
        self._tts = tts
        self._speaker = speaker
        self._cache = cache
        self._pending: deque[_QueueItem] = deque()
        self._active: Optional[_QueueItem] = None
        self._paused = False
        self._generation = 0
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def is_speaking(self) -> bool:
        """True while an utterance is active or waiting."""
        return self._active is not None or bool(self._pending)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def enqueue(self, request: PlaybackRequest) -> asyncio.Future:
        """
        Add a request to the queue.

        Returns:
            Future resolved (never failed) once the utterance is over
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append(_QueueItem(request, future, self._generation))
        logger.debug("Enqueued %r (%d pending)", request.text[:60], len(self._pending))

        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())
        return future

    async def say(self, text: str, language: str = "vi-VN", speed: float = 1.0) -> None:
        """Enqueue ``text`` and wait until it has been spoken."""
        await self.enqueue(PlaybackRequest(text=text, language=language, speed=speed))

    def pause(self) -> None:
        """Pause the active utterance. Waiting requests stay queued."""
        if self._active is None:
            return
        self._paused = True
        if self._active.sound is not None:
            self._active.sound.pause()

    def resume(self) -> None:
        """Continue the paused utterance."""
        if not self._paused:
            return
        self._paused = False
        if self._active is not None and self._active.sound is not None:
            self._active.sound.resume()

    def skip(self) -> None:
        """End the active utterance only; the next one starts right away."""
        item = self._active
        if item is None:
            return
        item.skipped = True
        if item.sound is not None:
            item.sound.unload()

    def stop(self) -> None:
        """Drop every waiting request and release the active sound."""
        self._generation += 1
        self._paused = False

        dropped = 0
        while self._pending:
            _resolve(self._pending.popleft().future)
            dropped += 1

        item = self._active
        if item is not None:
            item.skipped = True
            if item.sound is not None:
                item.sound.unload()

        if dropped or item is not None:
            logger.debug("Playback stopped (%d queued requests dropped)", dropped)

    async def wait_idle(self) -> None:
        """Wait until nothing is playing or queued."""
        while self._drain_task is not None and not self._drain_task.done():
            await asyncio.wait({self._drain_task})

    async def close(self) -> None:
        """Stop playback and end the drain task."""
        self.stop()
        task = self._drain_task
        self._drain_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _drain(self) -> None:
        while self._pending:
            item = self._pending.popleft()
            self._active = item
            self._paused = False
            try:
                await self._play(item)
            except asyncio.CancelledError:
                _resolve(item.future)
                raise
            except Exception:
                logger.exception("Failed to speak %r, skipping", item.request.text[:60])
            finally:
                if item.sound is not None:
                    item.sound.unload()
                self._active = None
                _resolve(item.future)

    async def _play(self, item: _QueueItem) -> None:
        result = await self._synthesize(item.request)

        # stop() or skip() arrived while the audio was being synthesized
        if item.skipped or item.generation != self._generation:
            return

        sound = self._speaker.load(result.audio)
        item.sound = sound
        sound.play()
        if self._paused:
            sound.pause()

        finished = await sound.wait()
        logger.debug(
            "Utterance %s: %r",
            "finished" if finished else "interrupted",
            item.request.text[:60],
        )

    async def _synthesize(self, request: PlaybackRequest) -> SynthesisResult:
        if self._cache is not None:
            cached = self._cache.get(request.text, request.language, request.speed)
            if cached is not None:
                return cached

        result = await self._tts.synthesize(
            request.text, language=request.language, speed=request.speed
        )
        if self._cache is not None:
            self._cache.put(request.text, request.language, request.speed, result)
        return result
