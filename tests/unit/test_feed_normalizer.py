"""
Feed Normalizer Tests
=====================

Tests for dialect detection, per-dialect field extraction, the media
image chain, lenient dates and the entry cap.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from comicfeed.ingestion.feed_normalizer import (
    FeedNormalizer,
    extract_media_image,
    parse_feed_date,
)
from comicfeed.ingestion.markup import LxmlXmlBuilder, MarkupSyntaxError
from comicfeed.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    InvalidFeedFormat,
    UnknownFeedFormat,
)


SOURCE_URL = "https://comic.example.com/feeds/main.xml"


@pytest.fixture
def normalizer():
    return FeedNormalizer()


def rss_item(body: str) -> str:
    return (
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">'
        f"<channel><title>T</title><item>{body}</item></channel></rss>"
    )


class TestParseFeedDate:
    """Test lenient date parsing."""

    def test_rfc822(self):
        assert parse_feed_date("Mon, 01 Jan 2024 00:00:00 GMT") == datetime(
            2024, 1, 1, tzinfo=timezone.utc
        )

    def test_iso8601_with_offset_is_converted_to_utc(self):
        assert parse_feed_date("2024-03-07T08:00:00+02:00") == datetime(
            2024, 3, 7, 6, 0, tzinfo=timezone.utc
        )

    def test_free_form_date(self):
        assert parse_feed_date("January 1, 2024") == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_free_form_date_with_offset(self):
        assert parse_feed_date("2024/01/01 12:00:00 +0100") == datetime(
            2024, 1, 1, 11, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", "yesterday-ish"])
    def test_unparsable_values_become_none(self, value):
        assert parse_feed_date(value) is None


class TestDialectDetection:
    """Test RSS/Atom detection and format errors."""

    def test_rss(self, normalizer, sample_rss):
        feed = normalizer.normalize(sample_rss, SOURCE_URL)
        assert feed.title == "Test Comic"

    def test_atom(self, normalizer, sample_atom):
        feed = normalizer.normalize(sample_atom, SOURCE_URL)
        assert feed.title == "Atom Comic"

    def test_channel_wins_over_feed_root(self, normalizer):
        """A feed root that also holds a channel is read as RSS."""
        document = (
            "<feed>"
            "<entry><title>Atom entry</title></entry>"
            "<channel><title>RSS side</title><item><title>RSS item</title></item></channel>"
            "</feed>"
        )
        feed = normalizer.normalize(document, SOURCE_URL)
        assert feed.title == "RSS side"
        assert [e.title for e in feed.entries] == ["RSS item"]

    def test_declared_encoding_is_honoured_for_bytes(self, normalizer):
        document = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            "<rss><channel><title>Caf\xe9 Comics</title>"
            "<item><title>R\xe9sum\xe9</title></item></channel></rss>"
        ).encode("latin-1")

        feed = normalizer.normalize(document, SOURCE_URL)

        assert feed.title == "Caf\xe9 Comics"
        assert feed.entries[0].title == "R\xe9sum\xe9"

    def test_leading_whitespace_before_declaration_in_bytes(self, normalizer, sample_rss):
        feed = normalizer.normalize(("\n  " + sample_rss).encode("utf-8"), SOURCE_URL)
        assert feed.title == "Test Comic"

    def test_malformed_xml(self, normalizer):
        with pytest.raises(InvalidFeedFormat) as exc_info:
            normalizer.normalize("<rss><channel><title>oops</channel>", SOURCE_URL)
        assert exc_info.value.error_code == ErrorCode.FEED_PARSE_ERROR
        assert exc_info.value.feed_url == SOURCE_URL
        assert exc_info.value.message == "Invalid feed format"

    def test_html_page_is_not_a_feed(self, normalizer):
        with pytest.raises(InvalidFeedFormat):
            normalizer.normalize("<html><body><p>Hi<br></body></html>", SOURCE_URL)

    def test_unknown_dialect(self, normalizer):
        with pytest.raises(UnknownFeedFormat) as exc_info:
            normalizer.normalize("<opml><body/></opml>", SOURCE_URL)
        assert exc_info.value.error_code == ErrorCode.FEED_UNKNOWN_FORMAT
        assert exc_info.value.message == "Unknown feed format"

    def test_tree_builder_is_injectable(self):
        builder = Mock()
        builder.parse.side_effect = MarkupSyntaxError("broken")
        normalizer = FeedNormalizer(tree_builder=builder)

        with pytest.raises(InvalidFeedFormat):
            normalizer.normalize("<rss/>", SOURCE_URL)
        builder.parse.assert_called_once_with("<rss/>")


class TestRssExtraction:
    """Test RSS channel and item fields."""

    def test_feed_metadata(self, normalizer, sample_rss):
        feed = normalizer.normalize(sample_rss, SOURCE_URL)
        assert feed.description == "A comic about tests"
        assert feed.link == "https://comic.example.com/"
        assert feed.base_url == "https://comic.example.com"

    def test_items(self, normalizer, sample_rss):
        first, second = normalizer.normalize(sample_rss, SOURCE_URL).entries

        assert first.title == "Strip One"
        assert first.link == "https://comic.example.com/1"
        assert first.published_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert first.content_html == '<p>Encoded <img src="/strips/1.png"></p>'

        assert second.title == "Strip Two"
        assert second.published_at is None
        assert second.content_html == '<p>Second <a href="/archive">archive</a></p>'
        assert second.media_image_url is None

    def test_missing_fields_use_defaults(self, normalizer):
        feed = normalizer.normalize(rss_item(""), SOURCE_URL)
        entry = feed.entries[0]
        assert entry.title == "Untitled"
        assert entry.link == ""
        assert entry.content_html == ""
        assert entry.published_at is None
        assert feed.description == ""
        assert feed.link == ""

    def test_unparsable_pubdate_does_not_invalidate_item(self, normalizer):
        feed = normalizer.normalize(
            rss_item("<title>Odd</title><pubDate>sometime soon</pubDate>"), SOURCE_URL
        )
        assert feed.entries[0].title == "Odd"
        assert feed.entries[0].published_at is None

    def test_media_title_is_not_the_item_title(self, normalizer):
        feed = normalizer.normalize(
            rss_item("<media:title>Media</media:title><title>Real</title>"), SOURCE_URL
        )
        assert feed.entries[0].title == "Real"

    def test_channel_without_namespace_prefix_declarations(self, normalizer, rss_builder):
        feed = normalizer.normalize(rss_builder(3), SOURCE_URL)
        assert [e.link for e in feed.entries] == [f"https://example.com/{i}" for i in range(3)]


class TestAtomExtraction:
    """Test Atom feed and entry fields."""

    def test_feed_metadata(self, normalizer, sample_atom):
        feed = normalizer.normalize(sample_atom, SOURCE_URL)
        assert feed.description == "Strips in Atom"
        assert feed.link == "https://atom.example.org/"
        assert feed.base_url == "https://comic.example.com"

    def test_alternate_link_is_preferred(self, normalizer, sample_atom):
        entry = normalizer.normalize(sample_atom, SOURCE_URL).entries[0]
        assert entry.link == "https://atom.example.org/first"

    def test_link_without_rel_is_used(self, normalizer, sample_atom):
        entry = normalizer.normalize(sample_atom, SOURCE_URL).entries[1]
        assert entry.link == "https://atom.example.org/second"

    def test_first_link_when_none_is_alternate(self, normalizer):
        document = (
            '<feed xmlns="http://www.w3.org/2005/Atom"><entry>'
            '<link rel="related" href="https://a.test/related"/>'
            '<link rel="via" href="https://a.test/via"/>'
            "</entry></feed>"
        )
        entry = normalizer.normalize(document, SOURCE_URL).entries[0]
        assert entry.link == "https://a.test/related"

    def test_published_preferred_over_updated(self, normalizer, sample_atom):
        first, second, third = normalizer.normalize(sample_atom, SOURCE_URL).entries
        assert first.published_at == datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc)
        assert second.published_at == datetime(2024, 3, 7, 6, 0, tzinfo=timezone.utc)
        assert third.published_at is None

    def test_content_preferred_over_summary(self, normalizer, sample_atom):
        first, second, third = normalizer.normalize(sample_atom, SOURCE_URL).entries
        assert first.content_html == "<p>First content</p>"
        assert second.content_html == "Only a summary"
        assert third.content_html == ""

    def test_blank_title_becomes_untitled(self, normalizer, sample_atom):
        entry = normalizer.normalize(sample_atom, SOURCE_URL).entries[2]
        assert entry.title == "Untitled"
        assert entry.link == ""


class TestMediaImage:
    """Test the media image extraction chain."""

    def extract(self, body: str):
        document = LxmlXmlBuilder().parse(rss_item(body))
        return extract_media_image(document.root.find("item"))

    def test_media_content_beats_enclosure(self):
        assert self.extract(
            '<enclosure url="https://x.test/enc.png" type="image/png"/>'
            '<media:content url="https://x.test/media.png"/>'
        ) == "https://x.test/media.png"

    def test_element_with_image_medium(self):
        assert self.extract(
            '<picture medium="image" url="https://x.test/medium.png"/>'
        ) == "https://x.test/medium.png"

    def test_thumbnail(self):
        assert self.extract(
            '<media:thumbnail url="https://x.test/thumb.png"/>'
        ) == "https://x.test/thumb.png"

    def test_image_enclosure(self):
        assert self.extract(
            '<enclosure url="https://x.test/enc.jpg" type="image/jpeg"/>'
        ) == "https://x.test/enc.jpg"

    def test_non_image_enclosure_is_ignored(self):
        assert self.extract('<enclosure url="https://x.test/ep.mp3" type="audio/mpeg"/>') is None

    def test_nothing(self):
        assert self.extract("<title>No image</title>") is None

    def test_media_content_inside_group(self):
        assert self.extract(
            '<media:group><media:content url="https://x.test/grouped.png"/></media:group>'
        ) == "https://x.test/grouped.png"

    def test_sample_rss(self, normalizer, sample_rss):
        entry = normalizer.normalize(sample_rss, SOURCE_URL).entries[0]
        assert entry.media_image_url == "https://cdn.example.com/1.png"


class TestEntryCap:
    """Test the bounded entry list."""

    @pytest.mark.parametrize("count", [0, 1, 20])
    def test_rss_up_to_cap_keeps_everything_in_order(self, normalizer, rss_builder, count):
        feed = normalizer.normalize(rss_builder(count), SOURCE_URL)
        assert [e.title for e in feed.entries] == [f"Item {i}" for i in range(count)]

    @pytest.mark.parametrize("count", [21, 45])
    def test_rss_over_cap_keeps_first_twenty(self, normalizer, rss_builder, count):
        feed = normalizer.normalize(rss_builder(count), SOURCE_URL)
        assert [e.title for e in feed.entries] == [f"Item {i}" for i in range(20)]

    def test_atom_over_cap_keeps_first_twenty(self, normalizer, atom_builder):
        feed = normalizer.normalize(atom_builder(30), SOURCE_URL)
        assert [e.title for e in feed.entries] == [f"Entry {i}" for i in range(20)]

    def test_smaller_configured_cap(self, rss_builder):
        feed = FeedNormalizer(max_entries=5).normalize(rss_builder(8), SOURCE_URL)
        assert len(feed.entries) == 5

    @pytest.mark.parametrize("requested", [21, 50])
    def test_larger_requested_cap_is_clamped(self, rss_builder, requested):
        normalizer = FeedNormalizer(max_entries=requested)
        feed = normalizer.normalize(rss_builder(30), SOURCE_URL)

        assert normalizer.max_entries == 20
        assert [e.title for e in feed.entries] == [f"Item {i}" for i in range(20)]

    @pytest.mark.parametrize("requested", [0, -3])
    def test_cap_below_one_is_rejected(self, requested):
        with pytest.raises(ConfigurationError):
            FeedNormalizer(max_entries=requested)

    def test_cap_from_environment(self, monkeypatch, rss_builder):
        from comicfeed.config.settings import get_settings

        monkeypatch.setenv("COMICFEED_FEEDS__MAX_ENTRIES", "3")
        get_settings(reload=True)

        feed = FeedNormalizer().normalize(rss_builder(8), SOURCE_URL)
        assert len(feed.entries) == 3
