"""Display composition for normalized feed entries."""

from .entry_formatter import EntryFormatter, EntryView, format_entry_date, has_inline_image

__all__ = ["EntryFormatter", "EntryView", "format_entry_date", "has_inline_image"]
