"""
Entry Formatter Tests
=====================

Tests for date labels, lead-image precedence and entry rendering.
"""

from datetime import datetime, timezone

import pytest

from comicfeed.delivery.entry_formatter import (
    EntryFormatter,
    format_entry_date,
    has_inline_image,
)
from comicfeed.ingestion.models import FeedEntry, NormalizedFeed


@pytest.fixture
def formatter():
    return EntryFormatter()


class TestFormatEntryDate:
    """Test long-form date labels."""

    def test_month_day_year(self):
        assert format_entry_date(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "January 1, 2024"

    def test_day_is_not_zero_padded(self):
        assert format_entry_date(datetime(2023, 11, 5)) == "November 5, 2023"

    def test_missing_date(self):
        assert format_entry_date(None) == ""


class TestHasInlineImage:
    """Test inline image detection."""

    @pytest.mark.parametrize(
        "html, expected",
        [
            ('<p><img src="a.png"></p>', True),
            ('<IMG SRC="a.png">', True),
            ("<p>no image</p>", False),
            ("<imgx>not an image</imgx>", False),
            ("", False),
        ],
    )
    def test_detection(self, html, expected):
        assert has_inline_image(html) is expected


class TestEntryFormatter:
    """Test entry view composition."""

    def test_lead_image_when_body_has_none(self, formatter):
        view = formatter.format_entry(
            FeedEntry(title="Strip", content_html="<p>text</p>", media_image_url="https://x.test/a.png")
        )
        assert view.lead_image_html == (
            '<img src="https://x.test/a.png" alt="Strip" loading="lazy">'
        )

    def test_no_lead_image_when_body_has_one(self, formatter):
        view = formatter.format_entry(
            FeedEntry(
                title="Strip",
                content_html='<p><img src="https://x.test/inline.png"/></p>',
                media_image_url="https://x.test/a.png",
            )
        )
        assert view.lead_image_html == ""

    def test_no_lead_image_without_media(self, formatter):
        assert formatter.format_entry(FeedEntry(content_html="<p>t</p>")).lead_image_html == ""

    def test_render_escapes_title_and_links_it(self, formatter):
        view = formatter.format_entry(
            FeedEntry(
                title="Cats & <Dogs>",
                link="https://x.test/1",
                published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
                content_html="<p>body</p>",
            )
        )
        html = view.render_html()

        assert (
            '<a href="https://x.test/1" target="_blank" rel="noopener noreferrer">'
            "Cats &amp; &lt;Dogs&gt;</a>"
        ) in html
        assert '<div class="entry-date">January 1, 2024</div>' in html
        assert "<p>body</p>" in html

    def test_render_without_link_or_date(self, formatter):
        html = formatter.format_entry(FeedEntry(title="Plain")).render_html()
        assert "<h3>Plain</h3>" in html
        assert "entry-date" not in html

    def test_lead_image_precedes_body(self, formatter):
        html = formatter.format_entry(
            FeedEntry(content_html="<p>body</p>", media_image_url="https://x.test/a.png")
        ).render_html()
        assert html.index("https://x.test/a.png") < html.index("<p>body</p>")

    def test_render_feed(self, formatter):
        feed = NormalizedFeed(entries=[FeedEntry(title="One"), FeedEntry(title="Two")])
        html = formatter.render_feed(feed)
        assert html.count('<article class="feed-entry">') == 2

    def test_render_empty_feed(self, formatter):
        assert "No entries found in this feed" in formatter.render_feed(NormalizedFeed())
