"""
ComicFeed Services
==================

Feed-load orchestration shared by every interface (CLI, UI).
"""

from .feed_loader import FeedLoader, LoadGeneration

__all__ = ["FeedLoader", "LoadGeneration"]
