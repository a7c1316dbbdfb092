"""
ComicFeed - Web Comic Feed Reader Core
======================================

Loads RSS and Atom feeds of web comics and turns them into display-ready
entries.

Main Components:
- Transport: direct fetch with ordered relay fallback over aiohttp
- Normalization: RSS 2.0 / Atom 1.0 dialect detection and entry extraction
- Sanitization: script and handler stripping, relative URL resolution
- Configuration: environment variables with Pydantic validation
"""

__version__ = "1.0.0"
__author__ = "ComicFeed Development Team"
__description__ = "Web comic feed reader core"

# Core imports for easy access
from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import ComicFeedError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "ComicFeedError",
]
