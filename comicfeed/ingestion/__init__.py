"""
ComicFeed Ingestion Module
==========================

Feed retrieval, parsing and content sanitization.
"""

from .content_sanitizer import ContentSanitizer
from .feed_normalizer import FeedNormalizer, parse_feed_date
from .feed_sources import derive_display_name, parse_feed_list, sort_sources
from .models import FeedEntry, FeedSource, NormalizedFeed
from .transport import RelayStrategy, TransportResolver, build_relay_strategies

__all__ = [
    "ContentSanitizer",
    "FeedNormalizer",
    "parse_feed_date",
    "derive_display_name",
    "parse_feed_list",
    "sort_sources",
    "FeedEntry",
    "FeedSource",
    "NormalizedFeed",
    "RelayStrategy",
    "TransportResolver",
    "build_relay_strategies",
]
