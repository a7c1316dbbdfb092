"""
Feed Normalizer
===============

Parses RSS 2.0 and Atom 1.0 documents into one ``NormalizedFeed`` shape.

Dialect is decided from document structure: a ``channel`` element means
RSS (checked first, so documents carrying both constructs are read as RSS),
otherwise a root ``feed`` element means Atom. Individual fields are read
leniently; a missing title, link, date or image never invalidates a feed.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union

from dateutil import parser as dateutil_parser
from feedparser.datetimes import _parse_date

from ..config.settings import get_settings
from ..utils.exceptions import ConfigurationError, InvalidFeedFormat, UnknownFeedFormat
from ..utils.logging import get_logger_for_component
from ..utils.urls import origin_of
from .markup import LxmlXmlBuilder, MarkupNode, MarkupSyntaxError, TreeBuilder
from .models import FeedEntry, NormalizedFeed


ATOM_NS = "http://www.w3.org/2005/Atom"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
MEDIA_NS = "http://search.yahoo.com/mrss/"

# RSS 2.0 elements are un-namespaced; Atom ones may omit the namespace in the wild
RSS_NAMESPACES = (None,)
ATOM_NAMESPACES = (ATOM_NS, None)

DEFAULT_TITLE = "Untitled"

MAX_ENTRIES_LIMIT = 20


def _fallback_parse_date(value: str) -> Optional[datetime]:
    """Free-form dates such as ``January 1, 2024``; naive results are UTC."""
    try:
        parsed = dateutil_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_feed_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a feed date into an aware UTC datetime.

    RFC 822 and ISO 8601 go through feedparser's date handlers; anything
    else gets one free-form attempt. Returns None for absent, blank or
    unparsable values.
    """
    if not value or not value.strip():
        return None
    value = value.strip()

    try:
        parsed = _parse_date(value)
    except (ValueError, TypeError, OverflowError):
        parsed = None
    if not parsed:
        return _fallback_parse_date(value)

    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (ValueError, TypeError):
        return None


def extract_media_image(item: MarkupNode) -> Optional[str]:
    """Image URL from media:content, media:thumbnail or an image enclosure.

    First match wins, in that order.
    """
    media_content = item.find("content", (MEDIA_NS,)) or item.find_by_attribute(
        "medium", "image"
    )
    if media_content is not None:
        url = media_content.get("url")
        if url:
            return url

    media_thumbnail = item.find("thumbnail", (MEDIA_NS,))
    if media_thumbnail is not None:
        url = media_thumbnail.get("url")
        if url:
            return url

    enclosure = item.find("enclosure", RSS_NAMESPACES)
    if enclosure is not None:
        if (enclosure.get("type") or "").startswith("image/"):
            return enclosure.get("url")

    return None


def _atom_link(container: MarkupNode) -> str:
    """href of the alternate link, else of the first link, else ''."""
    links = container.find_all("link", ATOM_NAMESPACES, recursive=False)
    for link in links:
        if link.get("rel") == "alternate":
            return (link.get("href") or "").strip()
    if links:
        return (links[0].get("href") or "").strip()
    return ""


class FeedNormalizer:
    """Detects feed dialect and extracts a bounded, uniform entry list."""

    def __init__(
        self,
        tree_builder: Optional[TreeBuilder] = None,
        max_entries: Optional[int] = None,
    ):
        """Initialize feed normalizer.

        Args:
            tree_builder: Strict XML tree builder (default: lxml)
            max_entries: Entry cap (default from config); clamped to 20

        Raises:
            ConfigurationError: If max_entries is below 1
        """
        if max_entries is None:
            max_entries = get_settings().feeds.max_entries
        if max_entries < 1:
            raise ConfigurationError(
                f"Entry cap must be at least 1, got {max_entries}",
                config_key="feeds.max_entries",
            )

        self.tree_builder = tree_builder or LxmlXmlBuilder()
        self.max_entries = min(max_entries, MAX_ENTRIES_LIMIT)
        self.logger = get_logger_for_component("feed_normalizer")

    def normalize(self, document: Union[str, bytes], source_url: str) -> NormalizedFeed:
        """Parse a feed document into a ``NormalizedFeed``.

        Args:
            document: Raw feed XML; bytes are decoded per the XML declaration
            source_url: URL the document was requested for

        Returns:
            Normalized feed whose base URL is the source's origin

        Raises:
            InvalidFeedFormat: If the document is not well-formed XML
            UnknownFeedFormat: If it is neither RSS nor Atom
        """
        try:
            tree = self.tree_builder.parse(document)
        except MarkupSyntaxError as e:
            self.logger.warning(f"Malformed feed XML from {source_url}: {e}")
            raise InvalidFeedFormat(feed_url=source_url) from e

        root = tree.root
        base_url = origin_of(source_url)

        channel = root if root.matches("channel") else root.find("channel")
        if channel is not None:
            feed = self._normalize_rss(channel, base_url)
            dialect = "rss"
        elif root.matches("feed"):
            feed = self._normalize_atom(root, base_url)
            dialect = "atom"
        else:
            self.logger.warning(
                f"Unrecognized root element <{root.local_name}> in {source_url}"
            )
            raise UnknownFeedFormat(feed_url=source_url)

        self.logger.info(
            f"Normalized {dialect} feed {source_url} with {len(feed.entries)} entries"
        )
        return feed

    def _normalize_rss(self, channel: MarkupNode, base_url: str) -> NormalizedFeed:
        entries = []
        for item in self._capped(channel.find_all("item", RSS_NAMESPACES)):
            entries.append(
                FeedEntry(
                    title=item.child_text("title", RSS_NAMESPACES) or DEFAULT_TITLE,
                    link=item.child_text("link", RSS_NAMESPACES),
                    published_at=parse_feed_date(item.child_text("pubDate", RSS_NAMESPACES)),
                    content_html=(
                        item.child_text("encoded", (CONTENT_NS,))
                        or item.child_text("description", RSS_NAMESPACES)
                    ),
                    media_image_url=extract_media_image(item),
                )
            )

        return NormalizedFeed(
            title=channel.child_text("title", RSS_NAMESPACES),
            description=channel.child_text("description", RSS_NAMESPACES),
            link=channel.child_text("link", RSS_NAMESPACES),
            base_url=base_url,
            entries=entries,
        )

    def _normalize_atom(self, feed: MarkupNode, base_url: str) -> NormalizedFeed:
        entries = []
        for entry in self._capped(feed.find_all("entry", ATOM_NAMESPACES)):
            published = entry.child_text("published", ATOM_NAMESPACES) or entry.child_text(
                "updated", ATOM_NAMESPACES
            )
            entries.append(
                FeedEntry(
                    title=entry.child_text("title", ATOM_NAMESPACES) or DEFAULT_TITLE,
                    link=_atom_link(entry),
                    published_at=parse_feed_date(published),
                    content_html=(
                        entry.child_text("content", ATOM_NAMESPACES)
                        or entry.child_text("summary", ATOM_NAMESPACES)
                    ),
                    media_image_url=extract_media_image(entry),
                )
            )

        return NormalizedFeed(
            title=feed.child_text("title", ATOM_NAMESPACES),
            description=feed.child_text("subtitle", ATOM_NAMESPACES),
            link=_atom_link(feed),
            base_url=base_url,
            entries=entries,
        )

    def _capped(self, nodes: List[MarkupNode]) -> List[MarkupNode]:
        """First ``max_entries`` nodes in document order."""
        if len(nodes) > self.max_entries:
            self.logger.debug(f"Keeping first {self.max_entries} of {len(nodes)} entries")
        return nodes[: self.max_entries]
