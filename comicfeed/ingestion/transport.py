"""
Transport Resolver
==================

Retrieves feed documents with an ordered fallback chain: a direct request
first, then each configured relay endpoint strictly in sequence until one
answers with a success status.

Attempts are never raced, retried or delayed; the first success wins and a
single ``FetchExhausted`` reports how many attempts were made when none did.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Sequence
from urllib.parse import quote

import aiohttp
import certifi

from ..config.settings import get_settings
from ..utils.exceptions import FetchExhausted, NetworkFailure
from ..utils.logging import get_logger_for_component


# Characters encodeURIComponent leaves alone beyond quote()'s defaults
_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True)
class RelayStrategy:
    """Maps a target URL onto an alternate request URL."""

    name: str
    template: str

    def request_url(self, target_url: str) -> str:
        return self.template.replace("{url}", quote(target_url, safe=_COMPONENT_SAFE))


def build_relay_strategies(templates: Sequence[str]) -> List[RelayStrategy]:
    """Relay strategies named after their endpoint host, in the given order."""
    strategies = []
    for template in templates:
        host = template.split("://", 1)[-1].split("/", 1)[0].split("?", 1)[0]
        strategies.append(RelayStrategy(name=host or template, template=template))
    return strategies


class TransportResolver:
    """Fetch-with-fallback over aiohttp.

    Holds only configuration; every ``fetch`` is independent, so one resolver
    can serve any number of concurrent loads.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[RelayStrategy]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        """Initialize transport resolver.

        Args:
            strategies: Relay strategies in preference order (default from config)
            session: Shared aiohttp session; a private one is opened per fetch otherwise
            timeout: Total timeout per attempt in seconds (default from config)
            user_agent: User-Agent header (default from config)
        """
        transport_settings = get_settings().transport
        if strategies is None:
            strategies = build_relay_strategies(transport_settings.relay_templates)
        self.strategies: List[RelayStrategy] = list(strategies)
        self.timeout = timeout if timeout is not None else transport_settings.request_timeout
        self.user_agent = user_agent or transport_settings.user_agent
        self._session = session
        self.logger = get_logger_for_component("transport")

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Yield the injected session, or a configured short-lived one."""
        if self._session is not None:
            yield self._session
            return

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }
        session_options = {"connector": connector, "headers": headers}
        if self.timeout is not None:
            session_options["timeout"] = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(**session_options) as session:
            yield session

    async def fetch(self, url: str) -> bytes:
        """Retrieve the raw document for ``url``, falling back through relays.

        The body is returned undecoded so the parser can honour the encoding
        declared in the document itself.

        Args:
            url: Target document URL

        Returns:
            Body bytes of the first successful attempt

        Raises:
            FetchExhausted: If the direct attempt and every relay failed
        """
        failures: List[NetworkFailure] = []

        async with self.get_session() as session:
            try:
                return await self._attempt(session, url, url, "direct")
            except NetworkFailure as failure:
                failures.append(failure)

            for strategy in self.strategies:
                request_url = strategy.request_url(url)
                try:
                    return await self._attempt(session, url, request_url, strategy.name)
                except NetworkFailure as failure:
                    failures.append(failure)

        attempts = len(failures)
        self.logger.error(
            f"All {attempts} attempts failed for {url}",
            extra={"feed_url": url, "attempts": attempts},
        )
        raise FetchExhausted(
            "Failed to fetch content through all available proxies",
            attempts=attempts,
            failures=failures,
            feed_url=url,
        )

    async def fetch_direct(self, url: str) -> bytes:
        """Retrieve the raw document with a single direct attempt.

        Raises:
            FetchExhausted: If the attempt failed (``attempts == 1``)
        """
        async with self.get_session() as session:
            try:
                return await self._attempt(session, url, url, "direct")
            except NetworkFailure as failure:
                raise FetchExhausted(
                    f"Failed to fetch {url}",
                    attempts=1,
                    failures=[failure],
                    feed_url=url,
                ) from failure

    async def _attempt(
        self,
        session: aiohttp.ClientSession,
        target_url: str,
        request_url: str,
        route: str,
    ) -> bytes:
        """Run one request; any failure surfaces as ``NetworkFailure``."""
        self.logger.debug(f"Fetching {target_url} via {route}: {request_url}")

        try:
            async with session.get(request_url) as response:
                if not 200 <= response.status < 300:
                    raise NetworkFailure(
                        f"HTTP {response.status} from {route}",
                        request_url=request_url,
                        status=response.status,
                        feed_url=target_url,
                    )
                content = await response.read()
        except NetworkFailure as failure:
            self.logger.warning(f"Attempt via {route} failed for {target_url}: {failure.message}")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning(f"Attempt via {route} failed for {target_url}: {e}")
            raise NetworkFailure(
                f"{type(e).__name__} from {route}: {e}",
                request_url=request_url,
                feed_url=target_url,
            ) from e

        self.logger.info(f"Fetched {target_url} via {route} ({len(content)} bytes)")
        return content
