"""
Entry Formatter
===============

Composes display-ready views of normalized feed entries.

Features:
- Escaped titles, optionally linked to the entry page
- Long-form date labels (``January 1, 2024``)
- Lead image synthesized from the entry's media image, shown only when the
  sanitized body has no image of its own
"""

import html
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..ingestion.models import FeedEntry, NormalizedFeed
from ..utils.logging import get_logger_for_component


INLINE_IMAGE_PATTERN = re.compile(r"<img\s", re.IGNORECASE)

EMPTY_FEED_MESSAGE = "No entries found in this feed"


def format_entry_date(published_at: Optional[datetime]) -> str:
    """Render a date as ``Month D, YYYY``, or '' when absent."""
    if published_at is None:
        return ""
    return f"{published_at.strftime('%B')} {published_at.day}, {published_at.year}"


def has_inline_image(content_html: str) -> bool:
    """Whether an HTML fragment embeds at least one image element."""
    return bool(content_html) and bool(INLINE_IMAGE_PATTERN.search(content_html))


@dataclass
class EntryView:
    """Display-ready pieces of a single entry."""

    title: str
    link: str
    date_label: str
    content_html: str
    lead_image_html: str = ""

    def render_html(self) -> str:
        """Render the entry as an ``<article>`` fragment."""
        escaped_title = html.escape(self.title)
        if self.link:
            heading = (
                f'<a href="{html.escape(self.link)}" target="_blank" '
                f'rel="noopener noreferrer">{escaped_title}</a>'
            )
        else:
            heading = escaped_title

        parts = ['<article class="feed-entry">', f"<h3>{heading}</h3>"]
        if self.date_label:
            parts.append(f'<div class="entry-date">{self.date_label}</div>')
        parts.append('<div class="entry-content">')
        if self.lead_image_html:
            parts.append(self.lead_image_html)
        parts.append(self.content_html)
        parts.append("</div>")
        parts.append("</article>")
        return "\n".join(parts)


class EntryFormatter:
    """Turns sanitized feed entries into ``EntryView`` objects."""

    def __init__(self):
        self.logger = get_logger_for_component("entry_formatter")

    def format_entry(self, entry: FeedEntry) -> EntryView:
        """Build the view for one entry whose content is already sanitized."""
        lead_image_html = ""
        if entry.media_image_url and not has_inline_image(entry.content_html):
            lead_image_html = (
                f'<img src="{html.escape(entry.media_image_url)}" '
                f'alt="{html.escape(entry.title)}" loading="lazy">'
            )

        return EntryView(
            title=entry.title,
            link=entry.link,
            date_label=format_entry_date(entry.published_at),
            content_html=entry.content_html,
            lead_image_html=lead_image_html,
        )

    def format_feed(self, feed: NormalizedFeed) -> List[EntryView]:
        views = [self.format_entry(entry) for entry in feed.entries]
        self.logger.debug(f"Formatted {len(views)} entries for {feed.link or feed.base_url}")
        return views

    def render_feed(self, feed: NormalizedFeed) -> str:
        """Render every entry of a feed, or a placeholder when it has none."""
        if not feed.entries:
            return f'<div class="loading">{EMPTY_FEED_MESSAGE}</div>'
        return "\n".join(view.render_html() for view in self.format_feed(feed))
