"""
News Assistant - hands-free voice news reader and chat assistant.
"""

import logging

# Suppress per-request chatter from the HTTP stack
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

__version__ = "0.1.0"

from news_assistant.errors import NewsAssistantError

__all__ = ["NewsAssistantError", "__version__"]
