"""
Audio I/O handling for the voice assistant.

Provides:
- Microphone input with per-chunk callbacks
- Loudness metering (RMS dBFS) for the silence gate
- Speaker output as individually controllable sounds (play/pause/resume/unload)
- WAV/MP3 decoding for synthesized speech and article audio
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Metering floor, matching what mobile recorders report for digital silence
SILENCE_DB = -160.0


@dataclass
class AudioConfig:
    """Audio configuration."""

    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: int = 100  # 100ms chunks
    dtype: str = "int16"

    @property
    def chunk_size(self) -> int:
        """Samples per chunk."""
        return int(self.sample_rate * self.chunk_duration_ms / 1000)


def rms_dbfs(audio: np.ndarray) -> float:
    """
    Loudness of a chunk in dBFS.

    Args:
        audio: Audio samples (int16 or float in [-1, 1])

    Returns:
        RMS level in dBFS, SILENCE_DB for empty or all-zero input
    """
    if audio.size == 0:
        return SILENCE_DB
    if audio.dtype == np.int16:
        audio_float = audio.astype(np.float32) / 32768.0
    else:
        audio_float = audio.astype(np.float32)

    rms = float(np.sqrt(np.mean(audio_float**2)))
    if rms <= 0.0:
        return SILENCE_DB
    return max(SILENCE_DB, 20.0 * float(np.log10(rms)))


@dataclass
class AudioBuffer:
    """One finished capture from the microphone."""

    samples: np.ndarray  # int16 PCM, mono
    sample_rate: int
    energy_level: float = SILENCE_DB  # peak chunk level in dBFS
    captured_at: datetime = field(default_factory=datetime.now)
    uri: Optional[str] = None

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate

    def pcm_bytes(self) -> bytes:
        """Raw little-endian LINEAR16 bytes."""
        return self.samples.astype("<i2").tobytes()

    def to_wav(self) -> bytes:
        """Encode as a WAV file."""
        import soundfile as sf

        buf = io.BytesIO()
        sf.write(buf, self.samples, self.sample_rate, format="WAV", subtype="PCM_16")
        return buf.getvalue()


@dataclass
class AudioClip:
    """Decoded audio ready for playback."""

    samples: np.ndarray  # float32, shape (frames, channels)
    sample_rate: int

    @property
    def channels(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.samples.shape[0] / self.sample_rate


def decode_audio(data: bytes) -> AudioClip:
    """
    Decode WAV/MP3/OGG bytes.

    Raises:
        PlaybackError: If the bytes are not a format libsndfile understands
    """
    import soundfile as sf

    from news_assistant.errors import PlaybackError

    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (sf.LibsndfileError, RuntimeError, TypeError) as e:
        raise PlaybackError(f"Could not decode audio ({len(data)} bytes): {e}") from e
    return AudioClip(samples=samples, sample_rate=sample_rate)


class Microphone(ABC):
    """Platform microphone."""

    @abstractmethod
    def request_permission(self) -> bool:
        """Ask for microphone access. Returns True when granted."""

    @abstractmethod
    def start(self, callback: Callable[[np.ndarray], None]) -> None:
        """Start capture, calling ``callback`` with each int16 chunk."""

    @abstractmethod
    def stop(self) -> None:
        """Stop capture and release the device."""


class AudioInput(Microphone):
    """
    Microphone input via sounddevice.

    Runs in a PortAudio thread, calls callback with audio chunks.
    """

    def __init__(
        self,
        config: Optional[AudioConfig] = None,
        device: Optional[int] = None,
    ):
        """
        Initialize audio input.

        Args:
            config: Audio configuration
            device: Input device index (None for default)
        """
        import sounddevice as sd

        self.config = config or AudioConfig()
        self.device = device
        self._sd = sd

        self._stream = None
        self._callback = None
        self._running = False

    def request_permission(self) -> bool:
        """Desktop equivalent of a permission prompt: can an input device be opened?"""
        try:
            self._sd.check_input_settings(
                device=self.device,
                channels=self.config.channels,
                samplerate=self.config.sample_rate,
                dtype=self.config.dtype,
            )
        except (self._sd.PortAudioError, ValueError) as e:
            logger.warning("Microphone unavailable: %s", e)
            return False
        return True

    def start(self, callback: Callable[[np.ndarray], None]) -> None:
        """
        Start audio capture.

        Args:
            callback: Function called with each audio chunk
        """
        if self._running:
            return

        self._callback = callback
        self._running = True

        self._stream = self._sd.InputStream(
            samplerate=self.config.sample_rate,
            channels=self.config.channels,
            dtype=self.config.dtype,
            blocksize=self.config.chunk_size,
            device=self.device,
            callback=self._audio_callback,
        )
        self._stream.start()

    def _audio_callback(self, indata, frames, time_info, status):
        """Internal callback from sounddevice."""
        if status:
            logger.warning("Audio input status: %s", status)

        if self._callback and self._running:
            # Convert to 1D array
            audio = indata[:, 0] if indata.ndim > 1 else indata
            self._callback(audio.copy())

    def stop(self) -> None:
        """Stop audio capture."""
        self._running = False
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.stop()


class Sound(ABC):
    """A single loaded piece of audio on the speaker."""

    @abstractmethod
    def play(self) -> None:
        """Start (or restart after pause) playback."""

    @abstractmethod
    def pause(self) -> None:
        """Pause, keeping the position."""

    @abstractmethod
    def resume(self) -> None:
        """Continue after pause."""

    @abstractmethod
    def unload(self) -> None:
        """Stop and release the device. Safe to call more than once."""

    @abstractmethod
    async def wait(self) -> bool:
        """Wait until playback ends. True if it played to the end, False if unloaded early."""

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        """True while audio is sounding."""


class Speaker(ABC):
    """Platform speaker."""

    @abstractmethod
    def load(self, data: bytes) -> Sound:
        """Decode ``data`` and prepare it for playback."""


class StreamSound(Sound):
    """
    Sound played through a sounddevice OutputStream.

    The stream callback runs on a PortAudio thread; completion is handed back
    to the event loop that called ``play``.
    """

    def __init__(self, clip: AudioClip, device: Optional[int] = None):
        import sounddevice as sd

        self._sd = sd
        self._clip = clip
        self.device = device
        self._pos = 0
        self._paused = False
        self._completed = False
        self._unloaded = False
        self._stream = None
        self._done: Optional[asyncio.Event] = None

    def play(self) -> None:
        if self._unloaded:
            return
        if self._stream is not None:
            self.resume()
            return

        loop = asyncio.get_running_loop()
        done = asyncio.Event()
        self._done = done

        def _finished():
            loop.call_soon_threadsafe(done.set)

        self._stream = self._sd.OutputStream(
            samplerate=self._clip.sample_rate,
            channels=self._clip.channels,
            dtype="float32",
            device=self.device,
            callback=self._callback,
            finished_callback=_finished,
        )
        self._stream.start()

    def _callback(self, outdata, frames, time_info, status):
        if status:
            logger.warning("Audio output status: %s", status)

        if self._paused:
            outdata.fill(0)
            return

        chunk = self._clip.samples[self._pos : self._pos + frames]
        outdata[: len(chunk)] = chunk
        self._pos += len(chunk)

        if len(chunk) < frames:
            outdata[len(chunk) :] = 0
            self._completed = True
            raise self._sd.CallbackStop

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def unload(self) -> None:
        if self._unloaded:
            return
        self._unloaded = True
        if self._stream is not None:
            self._stream.abort()
            self._stream.close()
            self._stream = None
        if self._done is not None:
            self._done.set()

    async def wait(self) -> bool:
        if self._done is None:
            return False
        await self._done.wait()
        return self._completed

    @property
    def is_playing(self) -> bool:
        return (
            self._stream is not None
            and not self._paused
            and not self._completed
            and not self._unloaded
        )


class SoundDeviceSpeaker(Speaker):
    """Speaker output via sounddevice."""

    def __init__(self, device: Optional[int] = None):
        """
        Initialize audio output.

        Args:
            device: Output device index (None for default)
        """
        import sounddevice as sd

        self.device = device
        if self.device is None:
            device_info = sd.query_devices(kind="output")
        else:
            device_info = sd.query_devices(self.device)
        logger.info("Audio output: %s", device_info["name"])

    def load(self, data: bytes) -> Sound:
        return StreamSound(decode_audio(data), device=self.device)
