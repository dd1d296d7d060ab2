"""
TTS backend registry for discovery and instantiation.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from news_assistant.tts.base import TTSBackend

# Registry of available backends
_tts_backends: dict[str, type["TTSBackend"]] = {}


def register_tts_backend(name: str):
    """
    Decorator to register a TTS backend.

    Args:
        name: Backend name (e.g., "google", "server")

    Example:
        @register_tts_backend("google")
        class GoogleTTSBackend(TTSBackend):
            ...
    """

    def decorator(cls: type["TTSBackend"]) -> type["TTSBackend"]:
        cls.name = name
        _tts_backends[name] = cls
        return cls

    return decorator


def get_tts_backend(name: str) -> "TTSBackend":
    """
    Get a TTS backend instance by name.

    Raises:
        ValueError: If backend not found
    """
    _discover_backends()

    if name not in _tts_backends:
        available = ", ".join(_tts_backends.keys())
        raise ValueError(f"TTS backend '{name}' not found. Available: {available}")

    return _tts_backends[name]()


def list_tts_backends() -> list[dict]:
    """List all available TTS backends."""
    _discover_backends()

    return [{"name": name, "class": cls.__name__} for name, cls in _tts_backends.items()]


def _discover_backends() -> None:
    """Import backend modules so they register via the decorator."""
    from news_assistant.tts import google, server  # noqa: F401
