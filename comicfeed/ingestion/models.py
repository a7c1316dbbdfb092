"""
Feed Data Models
================

Plain dataclasses for feed sources and normalized feed content. Every
load builds fresh instances; nothing here is cached or shared.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.urls import derive_display_name, origin_of


@dataclass(frozen=True)
class FeedSource:
    """A configured feed URL with its derived display metadata."""

    url: str
    display_name: str
    origin_url: str

    @classmethod
    def from_url(cls, url: str) -> "FeedSource":
        """Build a source from a feed URL, deriving name and origin."""
        url = url.strip()
        return cls(url=url, display_name=derive_display_name(url), origin_url=origin_of(url))


@dataclass
class FeedEntry:
    """A single RSS item or Atom entry with lenient defaults."""

    title: str = "Untitled"
    link: str = ""
    published_at: Optional[datetime] = None
    content_html: str = ""
    media_image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "content_html": self.content_html,
            "media_image_url": self.media_image_url,
        }


@dataclass
class NormalizedFeed:
    """Dialect-independent view of a feed document."""

    title: str = ""
    description: str = ""
    link: str = ""
    base_url: str = ""
    entries: List[FeedEntry] = field(default_factory=list)

    def with_entries(self, entries: List[FeedEntry]) -> "NormalizedFeed":
        """Copy of this feed with a different entry list."""
        return replace(self, entries=list(entries))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "base_url": self.base_url,
            "entries": [entry.to_dict() for entry in self.entries],
        }
