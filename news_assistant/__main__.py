"""
Entry point for running news-assistant as a module.

Usage: python -m news_assistant
"""

from news_assistant.cli import main

if __name__ == "__main__":
    main()
