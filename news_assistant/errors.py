"""
Error hierarchy for news-assistant.

Hierarchy:
    NewsAssistantError
    ├── PermissionDenied      microphone access refused (prompt the user, no retry)
    ├── RecorderError         microphone busy or failed to start/stop
    ├── NoSpeechDetected      recognizer returned nothing usable (re-prompt)
    ├── ServiceError          remote API failure
    │   ├── NetworkError      transport failure or non-2xx response
    │   └── QuotaExceeded     HTTP 429 from a remote API
    ├── PlaybackError         audio could not be decoded or played
    └── IndexOutOfRange       invalid article selection (also an IndexError)
"""

from __future__ import annotations

from typing import Optional

import httpx


class NewsAssistantError(Exception):
    """Base class for all news-assistant exceptions."""


class PermissionDenied(NewsAssistantError):
    """Microphone permission was refused."""


class RecorderError(NewsAssistantError):
    """The recorder could not start, stop, or was already held by another owner."""


class NoSpeechDetected(NewsAssistantError):
    """The recognizer returned zero segments or an empty transcript."""


class ServiceError(NewsAssistantError):
    """A remote API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, service: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.service = service


class NetworkError(ServiceError):
    """Remote API unreachable or returned an error status."""


class QuotaExceeded(ServiceError):
    """Remote API rate limit or quota hit (HTTP 429)."""


class PlaybackError(NewsAssistantError):
    """Audio could not be decoded or played."""


class IndexOutOfRange(NewsAssistantError, IndexError):
    """Article index outside the current article list."""


def _error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        for key in ("message", "error", "details"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


def error_from_response(response: httpx.Response, service: str) -> ServiceError:
    """
    Map a failed HTTP response to the error taxonomy.

    Args:
        response: Non-2xx response
        service: Short service name used in messages ("stt", "tts", ...)

    Returns:
        QuotaExceeded for 429, NetworkError otherwise
    """
    message = f"{service}: HTTP {response.status_code}: {_error_message(response)}"
    if response.status_code == 429:
        return QuotaExceeded(message, status_code=429, service=service)
    return NetworkError(message, status_code=response.status_code, service=service)
