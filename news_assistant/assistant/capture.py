"""
Speech capture: turns the platform microphone into start/stop recordings.

Only one recording can hold the microphone at a time. Manual (tap-to-record)
and continuous listening captures both go through here, so a second owner
trying to start while the first is live gets a RecorderError instead of a
competing session.
"""

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Optional

import numpy as np

from news_assistant.assistant.audio_io import (
    SILENCE_DB,
    AudioBuffer,
    AudioConfig,
    Microphone,
    rms_dbfs,
)
from news_assistant.errors import PermissionDenied, RecorderError

logger = logging.getLogger(__name__)


@dataclass
class RecordingHandle:
    """A live capture session."""

    owner: str
    started_at: datetime = field(default_factory=datetime.now)
    chunks: list[np.ndarray] = field(default_factory=list)
    metering: float = SILENCE_DB  # loudest chunk so far, dBFS
    active: bool = True

    def add_chunk(self, audio: np.ndarray) -> None:
        if not self.active:
            return
        self.chunks.append(audio)
        level = rms_dbfs(audio)
        if level > self.metering:
            self.metering = level


class SpeechCapture:
    """
    Microphone capture adapter.

    Usage:
        capture = SpeechCapture(AudioInput())
        handle = await capture.start_capture(owner="manual")
        ...
        audio = await capture.stop_capture(handle)

    Or scoped, releasing the microphone on every exit path:
        async with capture.recording("continuous") as handle:
            ...
    """

    def __init__(
        self,
        microphone: Microphone,
        config: Optional[AudioConfig] = None,
        capture_dir: Optional[Path] = None,
    ):
        self._microphone = microphone
        self.config = config or AudioConfig()
        self.capture_dir = Path(capture_dir) if capture_dir else None
        self._permission_granted = False
        self._active: Optional[RecordingHandle] = None

    @property
    def active_owner(self) -> Optional[str]:
        """Owner of the live recording, if any."""
        return self._active.owner if self._active else None

    @property
    def is_capturing(self) -> bool:
        return self._active is not None

    def _ensure_permission(self) -> None:
        if self._permission_granted:
            return
        if not self._microphone.request_permission():
            raise PermissionDenied("Microphone permission denied")
        self._permission_granted = True

    async def start_capture(self, owner: str = "manual") -> RecordingHandle:
        """
        Begin recording.

        Args:
            owner: Logical owner ("manual", "continuous")

        Raises:
            PermissionDenied: Microphone access refused
            RecorderError: Microphone busy or failed to open
        """
        if self._active is not None:
            raise RecorderError(
                f"Microphone busy: held by '{self._active.owner}', requested by '{owner}'"
            )

        self._ensure_permission()

        handle = RecordingHandle(owner=owner)
        try:
            self._microphone.start(handle.add_chunk)
        except Exception as e:
            handle.active = False
            raise RecorderError(f"Failed to start recording: {e}") from e

        self._active = handle
        logger.debug("Capture started (owner=%s)", owner)
        return handle

    async def stop_capture(self, handle: RecordingHandle) -> AudioBuffer:
        """
        Finish recording and return the captured audio.

        Raises:
            RecorderError: Handle is not the live recording, or the device failed to stop
        """
        if handle is not self._active or not handle.active:
            raise RecorderError("Recording is not active")

        self._active = None
        handle.active = False
        try:
            self._microphone.stop()
        except Exception as e:
            raise RecorderError(f"Failed to stop recording: {e}") from e

        if handle.chunks:
            samples = np.concatenate(handle.chunks).astype(np.int16)
        else:
            samples = np.zeros(0, dtype=np.int16)

        audio = AudioBuffer(
            samples=samples,
            sample_rate=self.config.sample_rate,
            energy_level=handle.metering,
            captured_at=handle.started_at,
        )
        if self.capture_dir is not None and samples.size:
            audio.uri = self._save(audio, handle.owner)

        logger.debug(
            "Capture stopped (owner=%s, %.1fs, peak %.1f dBFS)",
            handle.owner, audio.duration, audio.energy_level,
        )
        return audio

    def release(self) -> None:
        """Discard any live recording and free the microphone."""
        handle = self._active
        if handle is None:
            return
        self._active = None
        handle.active = False
        try:
            self._microphone.stop()
        except Exception:
            logger.exception("Error releasing microphone")
        logger.debug("Capture discarded (owner=%s)", handle.owner)

    @asynccontextmanager
    async def recording(self, owner: str = "manual") -> AsyncIterator[RecordingHandle]:
        """Scoped capture: the microphone is released however the block exits."""
        handle = await self.start_capture(owner)
        try:
            yield handle
        finally:
            if handle is self._active:
                self.release()

    def _save(self, audio: AudioBuffer, owner: str) -> str:
        self.capture_dir.mkdir(parents=True, exist_ok=True)
        path = self.capture_dir / f"{owner}-{int(time.time() * 1000)}.wav"
        path.write_bytes(audio.to_wav())
        return str(path)
