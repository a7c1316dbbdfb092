"""
Feed Loader Service
===================

Runs one feed-load operation end to end: fetch through the transport
chain, normalize the document, then sanitize every entry body against the
feed's origin. Also loads the published list of feed sources.

The loader keeps no state between loads. ``LoadGeneration`` is an opt-in
helper for callers that start overlapping loads and only want the newest
result.
"""

import itertools
from typing import List, Optional

from bs4 import UnicodeDammit

from ..config.settings import get_settings
from ..ingestion.content_sanitizer import ContentSanitizer
from ..ingestion.feed_normalizer import FeedNormalizer
from ..ingestion.feed_sources import parse_feed_list, sort_sources
from ..ingestion.models import FeedSource, NormalizedFeed
from ..ingestion.transport import TransportResolver
from ..utils.exceptions import get_user_friendly_message
from ..utils.logging import PerformanceLogger, get_logger_for_component


class LoadGeneration:
    """Monotonic load tokens; only the most recently issued one is current."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._current = 0

    def begin(self) -> int:
        """Start a new load and return its token, superseding older ones."""
        self._current = next(self._counter)
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current

    @property
    def current(self) -> int:
        return self._current


class FeedLoader:
    """Composes transport, normalization and sanitization into feed loads."""

    def __init__(
        self,
        transport: Optional[TransportResolver] = None,
        normalizer: Optional[FeedNormalizer] = None,
        sanitizer: Optional[ContentSanitizer] = None,
    ):
        """Initialize feed loader.

        Args:
            transport: Fetch-with-fallback resolver
            normalizer: Feed document normalizer
            sanitizer: Entry content sanitizer
        """
        self.transport = transport or TransportResolver()
        self.normalizer = normalizer or FeedNormalizer()
        self.sanitizer = sanitizer or ContentSanitizer()
        self.logger = get_logger_for_component("feed_loader")

    async def load_feed(self, url: str) -> NormalizedFeed:
        """Load a feed and return it with display-ready entry content.

        Args:
            url: Feed URL

        Returns:
            Normalized feed whose entry bodies are sanitized

        Raises:
            FetchExhausted: If no transport attempt succeeded
            InvalidFeedFormat: If the document is malformed XML
            UnknownFeedFormat: If the document is neither RSS nor Atom
        """
        with PerformanceLogger(self.logger, f"feed load {url}", feed_url=url):
            document = await self.transport.fetch(url)
            feed = self.normalizer.normalize(document, url)

            entries = []
            for entry in feed.entries:
                entry.content_html = self.sanitizer.sanitize(entry.content_html, feed.base_url)
                entries.append(entry)

            return feed.with_entries(entries)

    async def load_feed_if_current(
        self, url: str, generation: int, generations: LoadGeneration
    ) -> Optional[NormalizedFeed]:
        """Load a feed, discarding the result if a newer load has begun.

        Errors from a stale load are discarded too; errors from the current
        load propagate as in ``load_feed``.
        """
        try:
            feed = await self.load_feed(url)
        except Exception:
            if generations.is_current(generation):
                raise
            self.logger.debug(f"Discarding failure of superseded load {generation} for {url}")
            return None

        if not generations.is_current(generation):
            self.logger.debug(f"Discarding superseded load {generation} for {url}")
            return None
        return feed

    async def load_sources(self, list_url: Optional[str] = None) -> List[FeedSource]:
        """Fetch the newline-delimited feed list and return sorted sources.

        The list is fetched directly, without relay fallback.
        """
        list_url = list_url or get_settings().feeds.feed_list_url

        with PerformanceLogger(self.logger, "feed list load", feed_url=list_url):
            content = await self.transport.fetch_direct(list_url)
            text = UnicodeDammit(content, is_html=False).unicode_markup or ""
            sources = sort_sources(parse_feed_list(text))

        self.logger.info(f"Loaded {len(sources)} feed sources from {list_url}")
        return sources

    @staticmethod
    def describe_failure(exception: Exception, url: str) -> str:
        """User-visible text for a failed load of ``url``."""
        return f"Failed to load feed: {get_user_friendly_message(exception)}\nFeed URL: {url}"
