"""
News assistant core: ties the voice pipeline together.

    microphone -> SpeechCapture -> STT -> VoiceCommandInterpreter
        -> control / article selection -> PlaybackQueue (spoken replies)
                                        -> ArticlePlayer (article audio)

Continuous listening re-arms itself after every command except an article
selection; playback re-arms it once the article starts and again when it ends.
Any user action (manual recording, tapping an article) stops listening and
speech before it proceeds.
"""

import asyncio
import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from news_assistant.assistant.audio_io import (
    AudioBuffer,
    AudioConfig,
    AudioInput,
    Microphone,
    SoundDeviceSpeaker,
    Speaker,
)
from news_assistant.assistant.capture import RecordingHandle, SpeechCapture
from news_assistant.assistant.interpreter import (
    Action,
    Control,
    ControlCommand,
    MatchWeights,
    SelectByFuzzyMatch,
    SelectByNumber,
    VoiceCommandInterpreter,
)
from news_assistant.assistant.listening import ContinuousListeningLoop, LoopState
from news_assistant.assistant.playback import PlaybackQueue
from news_assistant.assistant.prompts import message, welcome
from news_assistant.assistant.session import ArticlePlayer, ArticleSession, PlaybackStatus
from news_assistant.assistant.tts_cache import TTSCache
from news_assistant.errors import (
    NoSpeechDetected,
    PermissionDenied,
    PlaybackError,
    QuotaExceeded,
    RecorderError,
    ServiceError,
)
from news_assistant.lang import alternative_language_codes, detect_speech_language, language_code
from news_assistant.news.feed import NewsFeed, create_news_feed
from news_assistant.news.models import Article
from news_assistant.stt.base import STTBackend
from news_assistant.stt.registry import get_stt_backend
from news_assistant.tts.base import TTSBackend
from news_assistant.tts.registry import get_tts_backend

logger = logging.getLogger(__name__)


class AssistantState(Enum):
    """Assistant state machine states."""

    IDLE = "idle"  # Waiting (continuous listening may be running)
    LOADING = "loading"  # Fetching news
    RECORDING = "recording"  # Manual recording in progress
    PROCESSING = "processing"  # STT -> interpret


@dataclass
class AssistantConfig:
    """Configuration for the news assistant."""

    # Language of prompts and speech recognition ("vi" or "en")
    language: str = "vi"

    # News
    news_source: str = "rss"  # "rss" or "server"
    rss_url: Optional[str] = None  # None = NEWS_ASSISTANT_RSS_URL / Tuổi Trẻ
    article_limit: int = 5
    headline_count: int = 5  # Headlines read out after fetching

    # Backends
    stt_backend: str = "google"  # "google" or "server"
    tts_backend: str = "google"  # "google" or "server"
    tts_speed: float = 1.0
    tts_cache_size: int = 64  # 0 disables the phrase cache

    # Continuous listening
    continuous_listening: bool = True
    capture_window_s: float = 3.0
    energy_threshold_db: float = -40.0
    restart_delay_s: float = 1.0

    # Audio
    input_sample_rate: int = 16000
    audio_input_device: Optional[int] = None
    audio_output_device: Optional[int] = None

    # Fuzzy title matching
    similarity_scale: float = 10.0
    keyword_bonus: float = 5.0
    word_bonus: float = 2.0
    min_word_length: int = 3
    min_match_score: float = 3.0

    # Callbacks
    on_state_change: Optional[Callable[[AssistantState], None]] = None
    on_listening_change: Optional[Callable[[LoopState], None]] = None
    on_transcript: Optional[Callable[[str], None]] = None
    on_action: Optional[Callable[[Action], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None

    @classmethod
    def from_yaml(cls, path: str) -> dict:
        """Load config values from a YAML file.

        Returns a dict of config keys -> values (not an AssistantConfig instance).
        Caller is responsible for merging with CLI overrides before constructing.
        Unknown keys are ignored.
        """
        import yaml

        yaml_path = Path(path).expanduser()
        with open(yaml_path) as f:
            raw = yaml.safe_load(f) or {}

        valid_keys = {f.name for f in fields(cls) if not f.name.startswith("on_")}
        return {k: v for k, v in raw.items() if k in valid_keys}

    def match_weights(self) -> MatchWeights:
        return MatchWeights(
            similarity_scale=self.similarity_scale,
            keyword_bonus=self.keyword_bonus,
            word_bonus=self.word_bonus,
            min_word_length=self.min_word_length,
            min_score=self.min_match_score,
        )


class NewsAssistant:
    """
    Voice-driven news reader.

    Usage:
        async with NewsAssistant(AssistantConfig(language="vi")) as assistant:
            await assistant.fetch_news()
            await assistant.toggle_recording()   # mic button
            ...

    Collaborators not passed in are created from the config.
    """

    def __init__(
        self,
        config: Optional[AssistantConfig] = None,
        stt: Optional[STTBackend] = None,
        tts: Optional[TTSBackend] = None,
        feed: Optional[NewsFeed] = None,
        microphone: Optional[Microphone] = None,
        speaker: Optional[Speaker] = None,
    ):
        from news_assistant.config import get_config

        self.config = config or AssistantConfig()
        self.state = AssistantState.IDLE
        self.language = self.config.language
        self.speech_language = language_code(self.language)

        self.stt = stt or self._init_stt()
        self.tts = tts or self._init_tts()
        self.feed = feed or self._init_feed()

        self.audio_config = AudioConfig(sample_rate=self.config.input_sample_rate)
        if microphone is None:
            microphone = AudioInput(config=self.audio_config, device=self.config.audio_input_device)
        if speaker is None:
            speaker = SoundDeviceSpeaker(device=self.config.audio_output_device)
        self.speaker = speaker

        self.capture = SpeechCapture(
            microphone, config=self.audio_config, capture_dir=get_config().capture_dir
        )
        cache = TTSCache(max_entries=self.config.tts_cache_size) if self.config.tts_cache_size else None
        self.queue = PlaybackQueue(self.tts, speaker, cache=cache)
        self.session = ArticleSession(ArticlePlayer(speaker, self.feed.download))
        self.interpreter = VoiceCommandInterpreter(self.config.match_weights())
        self.listener = ContinuousListeningLoop(
            self.capture,
            self._on_continuous_audio,
            capture_window_s=self.config.capture_window_s,
            energy_threshold_db=self.config.energy_threshold_db,
            restart_delay_s=self.config.restart_delay_s,
            wait_until_quiet=self.queue.wait_idle,
            on_state_change=self.config.on_listening_change,
        )

        self._manual_handle: Optional[RecordingHandle] = None
        self._playback_task: Optional[asyncio.Task] = None
        self._reading_aloud = False
        # Bumped on every user action so background sequences know to give way
        self._user_epoch = 0
        self._closed = False

    def _init_stt(self) -> STTBackend:
        logger.info("Loading STT backend: %s", self.config.stt_backend)
        backend = get_stt_backend(self.config.stt_backend)
        backend.load()
        return backend

    def _init_tts(self) -> TTSBackend:
        logger.info("Loading TTS backend: %s", self.config.tts_backend)
        backend = get_tts_backend(self.config.tts_backend)
        backend.load()
        return backend

    def _init_feed(self) -> NewsFeed:
        if self.config.news_source == "rss":
            return create_news_feed("rss", url=self.config.rss_url, limit=self.config.article_limit)
        return create_news_feed(self.config.news_source)

    def _set_state(self, new_state: AssistantState) -> None:
        if new_state == self.state:
            return
        logger.debug("Assistant: %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        if self.config.on_state_change is not None:
            self.config.on_state_change(new_state)

    def _report(self, error: Exception) -> None:
        if self.config.on_error is not None:
            self.config.on_error(error)

    @property
    def is_recording(self) -> bool:
        return self._manual_handle is not None

    # Speech output

    async def say(self, text: str, language: Optional[str] = None) -> None:
        """
        Speak ``text`` through the playback queue and wait for it.

        Article audio that is playing is held paused while the notice is spoken.
        """
        player = self.session.player
        held = player.is_playing
        if held:
            player.pause()
        try:
            await self.queue.say(text, language or self.speech_language, self.config.tts_speed)
        finally:
            if held and player.is_loaded and self.session.playback_status == PlaybackStatus.PLAYING:
                player.resume()

    async def speak(self, key: str, **kwargs) -> None:
        """Speak a prompt in the assistant's language."""
        await self.say(message(key, self.language, **kwargs))

    def _interrupt_speech(self) -> None:
        if self._reading_aloud and self.session.playback_status == PlaybackStatus.PLAYING:
            self.session.set_playback_status(PlaybackStatus.PAUSED)
        self.queue.stop()

    def _resume_listening(self) -> None:
        if self.config.continuous_listening and not self._closed and self._manual_handle is None:
            self.listener.start()

    # News

    async def fetch_news(self) -> list[Article]:
        """
        Fetch articles, read the headlines, then start listening.

        A user action during the read-out cuts it short and listening is
        left to that action.
        """
        epoch = self._user_epoch
        self._set_state(AssistantState.LOADING)
        try:
            articles = await self.feed.fetch()
        except (ServiceError, ValueError) as e:
            logger.error("Failed to fetch news: %s", e)
            self._report(e)
            self._set_state(AssistantState.IDLE)
            await self.speak("news_error")
            return []

        self.session.set_articles(articles)
        self._set_state(AssistantState.IDLE)
        logger.info("Loaded %d articles", len(articles))

        if not articles:
            await self.speak("no_news")
            return articles

        await self.say(welcome(self.language))
        for number, article in enumerate(articles[: self.config.headline_count], start=1):
            if self._user_epoch != epoch:
                return articles
            await self.speak("headline", number=number, title=article.title)

        if self._user_epoch != epoch:
            return articles
        await self.speak("instructions")

        if self._user_epoch == epoch:
            self._resume_listening()
        return articles

    # Selection and playback

    async def select_article(self, index: int) -> Article:
        """
        Select an article and start playing it.

        Raises:
            IndexOutOfRange: ``index`` outside the article list
        """
        self._user_epoch += 1
        await self.listener.stop()
        self._interrupt_speech()
        await self._cancel_playback()

        article = self.session.select(index)
        logger.info("Selected article %d: %s", index + 1, article.title)
        await self.speak("selected", number=index + 1, title=article.title)

        self._playback_task = asyncio.get_running_loop().create_task(self.play_article(index))
        return article

    async def _cancel_playback(self) -> None:
        task = self._playback_task
        self._playback_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def wait_playback(self) -> None:
        """Wait for the current article playback sequence to end."""
        task = self._playback_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def play_article(self, index: int) -> None:
        """
        Play an article's audio, or read it aloud when it has none.
        """
        article = self.session.articles[index]
        player = self.session.player
        await self.speak("loading", number=index + 1)

        try:
            audio_url = await self.feed.resolve_audio(article)
            if audio_url:
                await player.load(audio_url)
        except (ServiceError, PlaybackError, ValueError) as e:
            logger.warning("Cannot play audio for %s: %s", article.url, e)
            self._report(e)
            await self.speak("playback_error")
            await self._read_aloud(index)
            return

        if not audio_url:
            await self.speak("no_audio")
            await self._read_aloud(index)
            return

        player.play()
        self.session.set_playback_status(PlaybackStatus.PLAYING)
        self._resume_listening()

        finished = await player.wait_finished()
        if not finished:
            return

        self.session.set_playback_status(PlaybackStatus.IDLE)
        if self.listener.state == LoopState.LISTENING:
            await self.listener.stop()
        await self.speak("finished")
        self._resume_listening()

    async def _read_aloud(self, index: int) -> None:
        article = self.session.articles[index]
        text = article.spoken_text
        self.session.set_playback_status(PlaybackStatus.PLAYING)
        self._reading_aloud = True
        try:
            await self.say(text, detect_speech_language(text))
        finally:
            self._reading_aloud = False

        if (
            self.session.selected_index != index
            or self.session.playback_status != PlaybackStatus.PLAYING
        ):
            return

        self.session.set_playback_status(PlaybackStatus.IDLE)
        await self.speak("finished")
        self._resume_listening()

    # Commands

    async def execute_control(self, command: ControlCommand) -> bool:
        """
        Run a control command.

        Returns:
            False when the command selected an article (listening stays off)
        """
        session = self.session
        player = session.player

        if command == ControlCommand.STOP:
            if session.playback_status == PlaybackStatus.PLAYING:
                session.set_playback_status(PlaybackStatus.PAUSED)
                if player.is_loaded:
                    player.pause()
                else:
                    self.queue.stop()
                await self.speak("paused")
            return True

        if command == ControlCommand.CONTINUE:
            if session.playback_status == PlaybackStatus.PAUSED and session.selected is not None:
                await self.speak("continuing")
                if player.is_loaded:
                    player.resume()
                    session.set_playback_status(PlaybackStatus.PLAYING)
                else:
                    index = session.selected_index
                    self._playback_task = asyncio.get_running_loop().create_task(
                        self._read_aloud(index)
                    )
            return True

        if command == ControlCommand.REPEAT:
            if session.selected_index is None:
                await self.speak("no_selection")
                return True
            await self.select_article(session.selected_index)
            return False

        if session.selected_index is None:
            await self.speak("no_selection")
            return True

        if command == ControlCommand.NEXT:
            target = session.advance()
            if target is None:
                await self.speak("last_article")
                return True
        else:
            target = session.retreat()
            if target is None:
                await self.speak("first_article")
                return True

        await self.select_article(target)
        return False

    async def handle_utterance(self, text: str, continuous: bool = False) -> bool:
        """
        Interpret a transcript and act on it.

        Args:
            text: Transcript
            continuous: True when it came from continuous listening
                (unrecognized speech is then ignored instead of answered)

        Returns:
            Whether continuous listening should re-arm
        """
        action = self.interpreter.interpret(text, self.session.titles)
        logger.info("Command %r -> %s", text, action)
        if self.config.on_action is not None:
            self.config.on_action(action)

        if isinstance(action, Control):
            return await self.execute_control(action.command)

        if isinstance(action, (SelectByNumber, SelectByFuzzyMatch)):
            await self.select_article(action.index)
            return False

        if not continuous:
            await self.speak("no_match")
        return True

    async def process_audio(self, audio: AudioBuffer, continuous: bool = False) -> bool:
        """
        Transcribe captured audio and dispatch the command.

        Every failure becomes a spoken notice.

        Returns:
            Whether continuous listening should re-arm
        """
        self._set_state(AssistantState.PROCESSING)
        try:
            result = await self.stt.transcribe(
                audio,
                language=self.speech_language,
                alternative_languages=alternative_language_codes(self.language),
            )
        except asyncio.CancelledError:
            self._set_state(AssistantState.IDLE)
            raise
        except NoSpeechDetected:
            logger.info("No speech detected")
            self._set_state(AssistantState.IDLE)
            await self.speak("no_speech")
            return True
        except QuotaExceeded as e:
            logger.error("Speech quota exceeded: %s", e)
            self._report(e)
            self._set_state(AssistantState.IDLE)
            await self.speak("quota_exceeded")
            return True
        except (ServiceError, ValueError) as e:
            logger.error("Speech recognition failed: %s", e)
            self._report(e)
            self._set_state(AssistantState.IDLE)
            await self.speak("speech_error")
            return True

        self._set_state(AssistantState.IDLE)
        logger.info("Heard: %r (confidence %s)", result.text, result.confidence)
        if self.config.on_transcript is not None:
            self.config.on_transcript(result.text)
        return await self.handle_utterance(result.text, continuous=continuous)

    async def _on_continuous_audio(self, audio: AudioBuffer) -> bool:
        return await self.process_audio(audio, continuous=True)

    # Manual recording

    async def start_recording(self) -> bool:
        """
        Start a tap-to-record capture, preempting listening and speech.

        Returns:
            True if the microphone is now recording
        """
        self._user_epoch += 1
        await self.listener.stop()
        self._interrupt_speech()

        try:
            self._manual_handle = await self.capture.start_capture("manual")
        except PermissionDenied as e:
            logger.warning("Microphone permission denied")
            self._report(e)
            await self.speak("permission_required")
            return False
        except RecorderError as e:
            logger.error("Failed to start recording: %s", e)
            self._report(e)
            await self.speak("recorder_error")
            return False

        self._set_state(AssistantState.RECORDING)
        return True

    async def stop_recording(self) -> None:
        """Finish the manual capture and act on what was said."""
        handle = self._manual_handle
        if handle is None:
            return
        self._manual_handle = None

        try:
            audio = await self.capture.stop_capture(handle)
        except RecorderError as e:
            logger.error("Failed to stop recording: %s", e)
            self._report(e)
            self._set_state(AssistantState.IDLE)
            await self.speak("recorder_error")
            return

        self._set_state(AssistantState.IDLE)
        if await self.process_audio(audio, continuous=False):
            self._resume_listening()

    async def toggle_recording(self) -> None:
        """Mic button: start recording, or stop and process."""
        if self._manual_handle is not None:
            await self.stop_recording()
        else:
            await self.start_recording()

    async def submit_text(self, text: str) -> None:
        """Act on a typed command as if it had been spoken."""
        self._user_epoch += 1
        await self.listener.stop()
        if await self.handle_utterance(text, continuous=False):
            self._resume_listening()

    # Lifecycle

    async def run(self, read_line: Optional[Callable[[], Awaitable[Optional[str]]]] = None) -> None:
        """
        Interactive loop.

        Enter toggles the microphone, a number selects that article, any
        other text is handled as a spoken command, "q" quits.

        Args:
            read_line: Coroutine returning the next input line, None at EOF
        """
        if read_line is None:
            read_line = _read_stdin

        await self.fetch_news()
        while not self._closed:
            line = await read_line()
            if line is None:
                break
            command = line.strip()
            if command.lower() in ("q", "quit", "exit"):
                break
            if not command:
                await self.toggle_recording()
            elif command.isdigit():
                number = int(command)
                if 1 <= number <= len(self.session):
                    await self.select_article(number - 1)
                else:
                    logger.warning("No article %d (1..%d)", number, len(self.session))
            else:
                await self.submit_text(command)

    async def close(self) -> None:
        """Release the microphone, speaker and HTTP clients."""
        if self._closed:
            return
        self._closed = True
        await self.listener.stop()
        if self._manual_handle is not None:
            self._manual_handle = None
            self.capture.release()
        await self._cancel_playback()
        self.session.player.stop()
        await self.queue.close()
        await self.stt.close()
        await self.tts.close()
        await self.feed.close()

    async def __aenter__(self) -> "NewsAssistant":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


async def _read_stdin() -> Optional[str]:
    try:
        return await asyncio.to_thread(input, "> ")
    except EOFError:
        return None


def run_assistant(config: Optional[AssistantConfig] = None) -> None:
    """Quick start: run the assistant with real audio devices until quit."""

    async def _main() -> None:
        async with NewsAssistant(config) as assistant:
            await assistant.run()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        logger.info("Stopping assistant...")
