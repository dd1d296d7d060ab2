"""
News feeds.

- RSSNewsFeed: reads an RSS feed directly (Tuổi Trẻ "tin mới nhất" by default)
- ServerNewsFeed: the app backend's ``GET /news`` and ``GET /news/audio``
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import feedparser
import httpx

from news_assistant.errors import NetworkError, error_from_response
from news_assistant.news.models import Article, parse_pub_date

logger = logging.getLogger(__name__)

_CDATA = re.compile(r"^.*?<!\[CDATA\[|\]\]>.*$", re.DOTALL)
_TAGS = re.compile(r"<.*?>", re.DOTALL)


def clean_text(raw: str) -> str:
    """Strip CDATA wrappers, HTML tags and entities; collapse whitespace."""
    if not raw:
        return ""
    text = raw
    if "[CDATA[" in text:
        text = _CDATA.sub("", text)
    text = html.unescape(_TAGS.sub(" ", text))
    return " ".join(text.split())


class NewsFeed(ABC):
    """Source of articles."""

    name: str = "base"

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": "NewsAssistant/0.1"},
        )

    @abstractmethod
    async def fetch(self) -> list[Article]:
        """
        Latest articles, newest first.

        Raises:
            NetworkError / QuotaExceeded: Feed unavailable
        """

    async def resolve_audio(self, article: Article) -> Optional[str]:
        """Audio URL for an article, None when it can only be read by TTS."""
        return article.audio_url

    async def download(self, url: str) -> bytes:
        """Download article audio."""
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(f"news: {e}", service="news") from e
        if resp.is_error:
            raise error_from_response(resp, "news")
        return resp.content

    async def close(self) -> None:
        await self._client.aclose()


class RSSNewsFeed(NewsFeed):
    """Articles straight from an RSS feed."""

    name = "rss"

    def __init__(
        self,
        url: Optional[str] = None,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        from news_assistant.config import get_config

        feed_config = get_config().feed
        super().__init__(timeout=timeout or feed_config.timeout, transport=transport)
        self.url = url or feed_config.rss_url
        self.limit = limit if limit is not None else feed_config.limit

    async def fetch(self) -> list[Article]:
        logger.info("Fetching news from RSS: %s", self.url)
        try:
            resp = await self._client.get(self.url)
        except httpx.HTTPError as e:
            raise NetworkError(f"news: {e}", service="news") from e
        if resp.is_error:
            raise error_from_response(resp, "news")

        feed = feedparser.parse(resp.content)
        if feed.bozo and not feed.entries:
            raise NetworkError(f"news: Unreadable feed: {feed.bozo_exception}", service="news")

        articles = [self._to_article(entry) for entry in feed.entries[: self.limit]]
        logger.info("Fetched %d articles from RSS", len(articles))
        return articles

    @staticmethod
    def _to_article(entry: Any) -> Article:
        title = clean_text(entry.get("title", ""))
        description = clean_text(entry.get("description") or entry.get("summary", ""))

        content = description
        if entry.get("content"):
            content = clean_text(entry["content"][0].get("value", "")) or description

        audio_url = None
        for enclosure in entry.get("enclosures", []):
            if enclosure.get("type", "").startswith("audio/"):
                audio_url = enclosure.get("href")
                break

        return Article(
            title=title,
            url=entry.get("link", ""),
            audio_url=audio_url,
            published_at=parse_pub_date(entry.get("published")),
            description=description,
            content=content,
        )


class ServerNewsFeed(NewsFeed):
    """Articles from the app backend."""

    name = "server"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        from news_assistant.config import get_config

        api = get_config().api
        super().__init__(timeout=timeout or api.timeout, transport=transport)
        self.base_url = (base_url or api.base_url).rstrip("/")
        token = token or api.token
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"

    async def _get_json(self, path: str, **params) -> Any:
        try:
            resp = await self._client.get(f"{self.base_url}{path}", params=params or None)
        except httpx.HTTPError as e:
            raise NetworkError(f"news: {e}", service="news") from e
        if resp.is_error:
            raise error_from_response(resp, "news")
        return resp.json()

    async def fetch(self) -> list[Article]:
        data = await self._get_json("/news")
        return [Article.from_dict(item) for item in data]

    async def resolve_audio(self, article: Article) -> Optional[str]:
        if article.audio_url:
            return article.audio_url
        data = await self._get_json("/news/audio", url=article.url)
        return data.get("audioUrl") or None


_FEEDS: dict[str, type[NewsFeed]] = {
    RSSNewsFeed.name: RSSNewsFeed,
    ServerNewsFeed.name: ServerNewsFeed,
}


def create_news_feed(name: str = "rss", **kwargs) -> NewsFeed:
    """
    Create a news feed by name.

    Raises:
        ValueError: Unknown feed name
    """
    if name not in _FEEDS:
        available = ", ".join(_FEEDS)
        raise ValueError(f"News feed '{name}' not found. Available: {available}")
    return _FEEDS[name](**kwargs)
