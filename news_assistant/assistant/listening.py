"""
Continuous (hands-free) listening.

The loop keeps the microphone open between explicit user actions:

    wait for the assistant to stop talking
    -> record a fixed window
    -> drop the clip if it is quieter than the energy threshold
    -> otherwise hand it to the handler
    -> re-arm, unless the handler says not to

States: IDLE -> LISTENING -> PROCESSING -> LISTENING | IDLE.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from news_assistant.assistant.audio_io import SILENCE_DB, AudioBuffer
from news_assistant.assistant.capture import SpeechCapture
from news_assistant.errors import PermissionDenied, RecorderError

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"


@dataclass
class ListeningSession:
    """What the UI shows for the listening indicator."""

    is_listening: bool = False
    audio_energy_level: float = SILENCE_DB
    last_capture_uri: Optional[str] = None


# Returns True to keep listening, False to stay idle afterwards
AudioHandler = Callable[[AudioBuffer], Awaitable[bool]]


class ContinuousListeningLoop:
    """
    Self-restarting capture cycle.

    Usage:
        loop = ContinuousListeningLoop(capture, handler, wait_until_quiet=queue.wait_idle)
        loop.start()
        ...
        await loop.stop()

    ``start()`` and ``stop()`` may also be called from inside the handler; in
    that case they only decide what happens once the handler returns.
    """

    def __init__(
        self,
        capture: SpeechCapture,
        on_audio: AudioHandler,
        capture_window_s: float = 3.0,
        energy_threshold_db: float = -40.0,
        restart_delay_s: float = 1.0,
        wait_until_quiet: Optional[Callable[[], Awaitable[None]]] = None,
        on_state_change: Optional[Callable[[LoopState], None]] = None,
        owner: str = "continuous",
    ):
        self._capture = capture
        self._on_audio = on_audio
        self.capture_window_s = capture_window_s
        self.energy_threshold_db = energy_threshold_db
        self.restart_delay_s = restart_delay_s
        self._wait_until_quiet = wait_until_quiet
        self._on_state_change = on_state_change
        self.owner = owner

        self.session = ListeningSession()
        self._state = LoopState.IDLE
        self._task: Optional[asyncio.Task] = None
        # Decision made by start()/stop() while the handler was running
        self._after_handler: Optional[bool] = None
        self.last_error: Optional[Exception] = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _set_state(self, state: LoopState) -> None:
        if state == self._state:
            return
        logger.debug("Listening loop: %s -> %s", self._state.value, state.value)
        self._state = state
        self.session.is_listening = state == LoopState.LISTENING
        if self._on_state_change is not None:
            try:
                self._on_state_change(state)
            except Exception:
                logger.exception("State change callback failed")

    def start(self) -> None:
        """Begin listening. No-op while a cycle is already running."""
        if self.is_running:
            if self._state == LoopState.PROCESSING:
                self._after_handler = True
            return

        self._after_handler = None
        self.last_error = None
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """
        Stop listening and release the microphone.

        From inside the handler this only prevents the next cycle.
        """
        task = self._task
        if task is None or task.done():
            self._set_state(LoopState.IDLE)
            return

        if task is asyncio.current_task():
            self._after_handler = False
            return

        self._task = None
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self._set_state(LoopState.IDLE)

    async def _run(self) -> None:
        try:
            while True:
                if self._wait_until_quiet is not None:
                    await self._wait_until_quiet()

                audio = await self._record()
                if audio.energy_level <= self.energy_threshold_db:
                    logger.debug(
                        "Silence (%.1f dBFS <= %.1f), listening again",
                        audio.energy_level, self.energy_threshold_db,
                    )
                    await asyncio.sleep(self.restart_delay_s)
                    continue

                if not await self._dispatch(audio):
                    break
                await asyncio.sleep(self.restart_delay_s)
        except (PermissionDenied, RecorderError) as e:
            logger.warning("Continuous listening stopped: %s", e)
            self.last_error = e
        finally:
            if self._capture.active_owner == self.owner:
                self._capture.release()
            if self._task is asyncio.current_task():
                self._task = None
            self._set_state(LoopState.IDLE)

    async def _record(self) -> AudioBuffer:
        async with self._capture.recording(self.owner) as handle:
            self._set_state(LoopState.LISTENING)
            await asyncio.sleep(self.capture_window_s)
            audio = await self._capture.stop_capture(handle)

        self.session.audio_energy_level = audio.energy_level
        self.session.last_capture_uri = audio.uri
        return audio

    async def _dispatch(self, audio: AudioBuffer) -> bool:
        self._set_state(LoopState.PROCESSING)
        self._after_handler = None
        try:
            keep_listening = await self._on_audio(audio)
        except (PermissionDenied, RecorderError):
            raise
        except Exception:
            logger.exception("Voice command handler failed")
            keep_listening = True

        if self._after_handler is not None:
            keep_listening = self._after_handler
            self._after_handler = None
        return bool(keep_listening)
