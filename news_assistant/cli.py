"""
Command-line interface for News Assistant.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="news-assistant",
    help="Hands-free voice news reader",
    no_args_is_help=True,
)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Debug logging"),
):
    _setup_logging(verbose)


@app.command()
def run(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config preset (e.g., configs/default.yaml)"),
    language: str = typer.Option("vi", "--language", "-l", help="Prompt and recognition language (vi or en)"),
    news_source: str = typer.Option("rss", "--source", help="News source (rss or server)"),
    rss_url: Optional[str] = typer.Option(None, "--rss-url", help="RSS feed URL"),
    stt_backend: str = typer.Option("google", "--stt", help="STT backend (google or server)"),
    tts_backend: str = typer.Option("google", "--tts", help="TTS backend (google or server)"),
    tts_speed: float = typer.Option(1.0, "--speed", help="Speaking rate"),
    no_listen: bool = typer.Option(False, "--no-listen", help="Disable continuous listening"),
    input_device: Optional[int] = typer.Option(None, "--input-device", help="Audio input device index (see 'python -m sounddevice')"),
    output_device: Optional[int] = typer.Option(None, "--output-device", help="Audio output device index"),
):
    """
    Run the voice news reader.

    Press Enter to start/stop a manual recording, type a number to pick an
    article, type any other text to send it as a command, "q" to quit.

    Example:
        news-assistant run --config configs/english.yaml --tts server
    """
    from news_assistant.assistant.core import AssistantConfig, run_assistant
    from news_assistant.assistant.prompts import message

    console.print("[bold]News Assistant[/bold]\n")

    yaml_config: dict = {}
    if config_file is not None:
        if not config_file.exists():
            console.print(f"[red]Error: Config file not found: {config_file}[/red]")
            raise typer.Exit(1)
        yaml_config = AssistantConfig.from_yaml(str(config_file))
        console.print(f"[dim]Loaded config: {config_file}[/dim]")

    # CLI args override YAML, YAML overrides defaults. typer can't tell us
    # whether an option was passed, so anything equal to its default defers
    # to the YAML value.
    _cli_defaults = {
        "language": "vi", "news_source": "rss", "rss_url": None,
        "stt_backend": "google", "tts_backend": "google", "tts_speed": 1.0,
        "continuous_listening": True, "audio_input_device": None,
        "audio_output_device": None,
    }
    _cli_locals = {
        "language": language, "news_source": news_source, "rss_url": rss_url,
        "stt_backend": stt_backend, "tts_backend": tts_backend, "tts_speed": tts_speed,
        "continuous_listening": not no_listen, "audio_input_device": input_device,
        "audio_output_device": output_device,
    }
    values = dict(yaml_config)
    values.update({k: v for k, v in _cli_locals.items() if v != _cli_defaults[k]})
    for key, default in _cli_defaults.items():
        values.setdefault(key, default)

    config = AssistantConfig(
        **values,
        on_transcript=lambda text: console.print(f"[cyan]Heard:[/cyan] {text}"),
        on_action=lambda action: console.print(f"[dim]-> {action}[/dim]"),
        on_listening_change=lambda state: console.print(f"[dim]({state.value})[/dim]"),
    )

    console.print(f"[dim]STT: {config.stt_backend} | TTS: {config.tts_backend} | News: {config.news_source}[/dim]")
    console.print(f"[dim]{message('recording', config.language)}[/dim]\n")

    try:
        run_assistant(config)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def headlines(
    news_source: str = typer.Option("rss", "--source", help="News source (rss or server)"),
    rss_url: Optional[str] = typer.Option(None, "--rss-url", help="RSS feed URL"),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of articles"),
):
    """Print the latest articles."""
    from news_assistant.errors import ServiceError
    from news_assistant.news.feed import create_news_feed

    async def _fetch():
        if news_source == "rss":
            feed = create_news_feed("rss", url=rss_url, limit=limit)
        else:
            feed = create_news_feed(news_source)
        try:
            return await feed.fetch()
        finally:
            await feed.close()

    try:
        articles = asyncio.run(_fetch())
    except (ServiceError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Headlines")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Published")
    table.add_column("Audio")
    for number, article in enumerate(articles[:limit], start=1):
        published = article.published_at.strftime("%Y-%m-%d %H:%M") if article.published_at else ""
        table.add_row(str(number), article.title, published, "yes" if article.audio_url else "")
    console.print(table)


@app.command()
def interpret(
    text: str = typer.Argument(..., help="Transcript to classify"),
    count: int = typer.Option(5, "--count", "-n", help="Number of articles (ignored with --title)"),
    titles: Optional[list[str]] = typer.Option(None, "--title", "-t", help="Article title (repeatable)"),
):
    """Show how a voice command would be interpreted."""
    from news_assistant.assistant.interpreter import VoiceCommandInterpreter

    interpreter = VoiceCommandInterpreter()
    action = interpreter.interpret(text, titles if titles else count)
    console.print(f"[bold]{type(action).__name__}[/bold] {action}")


@app.command()
def say(
    text: str = typer.Argument(..., help="Text to speak"),
    backend: str = typer.Option("google", "--backend", "-b", help="TTS backend"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language code (default: detected)"),
    speed: float = typer.Option(1.0, "--speed", help="Speaking rate"),
    voice: Optional[str] = typer.Option(None, "--voice", "-v", help="Voice name"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save audio instead of playing"),
):
    """Synthesize speech."""
    from news_assistant.errors import NewsAssistantError
    from news_assistant.lang import detect_speech_language
    from news_assistant.tts.registry import get_tts_backend

    language = language or detect_speech_language(text)

    async def _say():
        tts = get_tts_backend(backend)
        tts.load()
        try:
            result = await tts.synthesize(text, language=language, speed=speed, voice=voice)
        finally:
            await tts.close()

        if output:
            result.save(str(output))
            console.print(f"[green]Saved: {output} ({result.size} bytes)[/green]")
            return

        from news_assistant.assistant.audio_io import SoundDeviceSpeaker

        sound = SoundDeviceSpeaker().load(result.audio)
        sound.play()
        await sound.wait()
        sound.unload()

    try:
        asyncio.run(_say())
    except (NewsAssistantError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def transcribe(
    audio: Path = typer.Argument(..., help="Audio file (WAV/FLAC/OGG)"),
    backend: str = typer.Option("google", "--backend", "-b", help="STT backend"),
    language: str = typer.Option("vi", "--language", "-l", help="Language (vi or en)"),
):
    """Transcribe an audio file."""
    import numpy as np
    import soundfile as sf

    from news_assistant.assistant.audio_io import AudioBuffer, rms_dbfs
    from news_assistant.errors import NewsAssistantError
    from news_assistant.lang import alternative_language_codes, language_code
    from news_assistant.stt.registry import get_stt_backend

    if not audio.exists():
        console.print(f"[red]Error: File not found: {audio}[/red]")
        raise typer.Exit(1)

    samples, sample_rate = sf.read(str(audio), dtype="int16", always_2d=True)
    mono = np.ascontiguousarray(samples[:, 0])
    buffer = AudioBuffer(samples=mono, sample_rate=sample_rate, energy_level=rms_dbfs(mono))

    async def _transcribe():
        stt = get_stt_backend(backend)
        stt.load()
        try:
            return await stt.transcribe(
                buffer,
                language=language_code(language),
                alternative_languages=alternative_language_codes(language),
            )
        finally:
            await stt.close()

    console.print(f"[dim]Transcribing {audio} ({buffer.duration:.1f}s)...[/dim]")
    try:
        result = asyncio.run(_transcribe())
    except (NewsAssistantError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]{result.text}[/bold]\n")
    if result.confidence is not None:
        console.print(f"[dim]Language: {result.language} | Confidence: {result.confidence:.2f}[/dim]")


@app.command()
def chat(
    text: str = typer.Argument("", help="Message"),
    images: Optional[list[Path]] = typer.Option(None, "--image", "-i", help="JPEG image (repeatable)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Gemini model"),
):
    """Ask Gemini a question, optionally about images."""
    from news_assistant.chat.gemini import GeminiClient
    from news_assistant.errors import NewsAssistantError, QuotaExceeded

    image_data = [path.read_bytes() for path in images or []]

    async def _chat():
        async with GeminiClient(model=model) as gemini:
            return await gemini.generate(text, image_data)

    try:
        reply = asyncio.run(_chat())
    except QuotaExceeded:
        console.print("[yellow]API quota exceeded. Please try again later.[/yellow]")
        raise typer.Exit(1)
    except (NewsAssistantError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(reply)


@app.command()
def voices(
    backend: str = typer.Option("google", "--backend", "-b", help="TTS backend"),
    language: str = typer.Option("vi-VN", "--language", "-l", help="Language code"),
):
    """List available TTS voices."""
    from news_assistant.errors import NewsAssistantError
    from news_assistant.tts.registry import get_tts_backend

    async def _voices():
        tts = get_tts_backend(backend)
        tts.load()
        try:
            return await tts.list_voices(language)
        finally:
            await tts.close()

    try:
        voice_list = asyncio.run(_voices())
    except (NewsAssistantError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]{backend} TTS Voices ({language})[/bold]\n")

    table = Table()
    table.add_column("Name")
    table.add_column("Language")
    table.add_column("Gender")
    table.add_column("Sample rate", justify="right")
    for v in voice_list:
        table.add_row(v.name, v.language, v.gender, str(v.sample_rate))
    console.print(table)


@app.command()
def info():
    """Show configuration and available backends."""
    from news_assistant import __version__
    from news_assistant.config import get_config
    from news_assistant.stt.registry import list_stt_backends
    from news_assistant.tts.registry import list_tts_backends

    config = get_config()

    table = Table(title=f"News Assistant {__version__}")
    table.add_column("Property")
    table.add_column("Value")
    table.add_row("API URL", config.api.base_url)
    table.add_row("API token", "set" if config.api.token else "[dim]not set[/dim]")
    table.add_row("Google Speech key", "set" if config.google.speech_api_key else "[dim]not set[/dim]")
    table.add_row("Google TTS key", "set" if config.google.tts_api_key else "[dim]not set[/dim]")
    table.add_row("Gemini key", "set" if config.gemini.api_key else "[dim]not set[/dim]")
    table.add_row("Gemini model", config.gemini.model)
    table.add_row("RSS feed", config.feed.rss_url)
    table.add_row("Capture dir", str(config.capture_dir) if config.capture_dir else "[dim]off[/dim]")
    console.print(table)

    console.print("\n[bold]TTS Backends[/bold]")
    for b in list_tts_backends():
        console.print(f"  - {b['name']}")

    console.print("\n[bold]STT Backends[/bold]")
    for b in list_stt_backends():
        console.print(f"  - {b['name']}")

    console.print()


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
