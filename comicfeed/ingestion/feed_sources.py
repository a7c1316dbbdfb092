"""
Feed Sources
============

Turns the externally published feed list into ``FeedSource`` objects,
named with ``derive_display_name``.
"""

from typing import Iterable, List

from ..utils.urls import derive_display_name
from .models import FeedSource

__all__ = ["derive_display_name", "parse_feed_list", "sort_sources"]


def parse_feed_list(text: str) -> List[FeedSource]:
    """Build sources from a newline-delimited list, skipping blank lines."""
    return [FeedSource.from_url(line) for line in text.splitlines() if line.strip()]


def sort_sources(sources: Iterable[FeedSource]) -> List[FeedSource]:
    """Sources ordered alphabetically by display name, ignoring case."""
    return sorted(sources, key=lambda source: source.display_name.casefold())
