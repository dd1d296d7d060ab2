"""
News data model.
"""

from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Optional


def parse_pub_date(value: Any) -> Optional[datetime]:
    """Parse an RFC 822 (RSS) or ISO 8601 date, None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Article:
    """One news article. Identified by ``url``."""

    title: str
    url: str
    audio_url: Optional[str] = None
    published_at: Optional[datetime] = None
    description: str = ""
    content: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        """Build from the feed JSON shape ``{title, url, audioUrl, pubDate, description, content}``."""
        description = data.get("description") or ""
        return cls(
            title=(data.get("title") or "").strip(),
            url=data.get("url") or data.get("link") or "",
            audio_url=data.get("audioUrl") or data.get("audio_url") or None,
            published_at=parse_pub_date(data.get("pubDate") or data.get("published_at")),
            description=description.strip(),
            content=data.get("content") or description,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "audioUrl": self.audio_url,
            "pubDate": self.published_at.isoformat() if self.published_at else None,
            "description": self.description,
            "content": self.content,
        }

    @property
    def spoken_text(self) -> str:
        """Text read aloud when the article has no audio."""
        parts = [self.title]
        if self.description and self.description != self.title:
            parts.append(self.description)
        return ". ".join(p.rstrip(". ") for p in parts if p)
