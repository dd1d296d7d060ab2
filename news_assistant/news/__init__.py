"""
News sources.
"""

from news_assistant.news.feed import NewsFeed, RSSNewsFeed, ServerNewsFeed, create_news_feed
from news_assistant.news.models import Article

__all__ = ["Article", "NewsFeed", "RSSNewsFeed", "ServerNewsFeed", "create_news_feed"]
