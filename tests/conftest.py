"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for ComicFeed tests.

Network access is never used: transport tests run against ``FakeSession``,
a stand-in for ``aiohttp.ClientSession`` that answers from a route table.
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Union

import aiohttp
import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ.setdefault("COMICFEED_LOGGING__CONSOLE_LOGGING", "false")


# ============================================================================
# Fake HTTP transport
# ============================================================================


class FakeResponse:
    """Async context manager mimicking an aiohttp response."""

    def __init__(self, status: int = 200, body: Union[str, bytes] = b"", reason: str = "OK"):
        self.status = status
        self.reason = reason
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


Outcome = Union[FakeResponse, Exception]


class FakeSession:
    """Records requested URLs and answers from a route table.

    Unknown URLs fail with a connection error, like an unreachable host.
    """

    def __init__(self, routes: Dict[str, Outcome] = None):
        self.routes = dict(routes or {})
        self.requested: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.requested.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            raise aiohttp.ClientConnectionError(f"Cannot connect to {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_response():
    """Build a ``FakeResponse``: ``fake_response(status, body)``."""
    return FakeResponse


@pytest.fixture
def fake_session_factory():
    """Build a ``FakeSession`` from a route table."""
    return FakeSession


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture(autouse=True)
def reset_settings():
    """Reload settings around every test so env patches do not leak."""
    from comicfeed.config.settings import get_settings

    get_settings(reload=True)
    yield
    get_settings(reload=True)


# ============================================================================
# Sample feed documents
# ============================================================================


@pytest.fixture
def sample_rss():
    """RSS 2.0 feed with two items, one dated and one undated."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/">
    <channel>
        <title>Test Comic</title>
        <link>https://comic.example.com/</link>
        <description>A comic about tests</description>
        <item>
            <title>Strip One</title>
            <link>https://comic.example.com/1</link>
            <pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate>
            <description>Plain description</description>
            <content:encoded><![CDATA[<p>Encoded <img src="/strips/1.png"></p>]]></content:encoded>
            <media:content url="https://cdn.example.com/1.png" medium="image"/>
            <enclosure url="https://cdn.example.com/1-enclosure.png" type="image/png" length="1"/>
        </item>
        <item>
            <title>Strip Two</title>
            <link>https://comic.example.com/2</link>
            <description><![CDATA[<p>Second <a href="/archive">archive</a></p>]]></description>
        </item>
    </channel>
</rss>"""


@pytest.fixture
def sample_atom():
    """Atom 1.0 feed with alternate, rel-less and missing links."""
    return """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
    <title>Atom Comic</title>
    <subtitle>Strips in Atom</subtitle>
    <link href="https://atom.example.org/feed.xml" rel="self"/>
    <link href="https://atom.example.org/" rel="alternate"/>
    <entry>
        <title>First Entry</title>
        <link href="https://atom.example.org/enclosed.png" rel="enclosure"/>
        <link href="https://atom.example.org/first" rel="alternate"/>
        <published>2024-03-05T10:30:00Z</published>
        <updated>2024-03-06T00:00:00Z</updated>
        <content type="html">&lt;p&gt;First content&lt;/p&gt;</content>
        <summary>First summary</summary>
    </entry>
    <entry>
        <title>Second Entry</title>
        <link href="https://atom.example.org/second"/>
        <updated>2024-03-07T08:00:00+02:00</updated>
        <summary>Only a summary</summary>
    </entry>
    <entry>
        <title>   </title>
    </entry>
</feed>"""


def build_rss(item_count: int) -> str:
    """RSS document with ``item_count`` numbered items."""
    items = "".join(
        f"<item><title>Item {i}</title><link>https://example.com/{i}</link></item>"
        for i in range(item_count)
    )
    return f'<rss version="2.0"><channel><title>Many</title>{items}</channel></rss>'


def build_atom(entry_count: int) -> str:
    """Atom document with ``entry_count`` numbered entries."""
    entries = "".join(
        f'<entry><title>Entry {i}</title><link href="https://example.com/{i}"/></entry>'
        for i in range(entry_count)
    )
    return f'<feed xmlns="http://www.w3.org/2005/Atom"><title>Many</title>{entries}</feed>'


@pytest.fixture
def rss_builder():
    return build_rss


@pytest.fixture
def atom_builder():
    return build_atom
