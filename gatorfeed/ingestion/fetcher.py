"""
RSS Feed Fetcher
================

Retrieves raw feed bytes over HTTP with a bounded round-trip budget.

Failures are classified for the ingestion engine: a non-200 answer raises
:class:`HTTPStatusError`, connection, I/O and timeout problems raise
:class:`NetworkError`. Cancelling the calling task aborts the request.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp
import certifi

from ..config.settings import DEFAULT_USER_AGENT, GatorSettings
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import ErrorCode, HTTPStatusError, NetworkError

DEFAULT_TIMEOUT = 10.0


class FeedFetcher:
    """HTTP GET of feed documents with a fixed user agent and timeout."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """Initialize feed fetcher.

        Args:
            timeout: Whole round-trip budget (connect + transfer) in seconds
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.logger = get_logger_for_component("fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @classmethod
    def from_settings(cls, settings: GatorSettings) -> "FeedFetcher":
        return cls(
            timeout=settings.ingestion.request_timeout,
            user_agent=settings.ingestion.user_agent,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit_per_host=5,
            enable_cleanup_closed=True,
        )

        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=headers,
        ) as session:
            yield session

    async def fetch(
        self, url: str, session: Optional[aiohttp.ClientSession] = None
    ) -> bytes:
        """Fetch the raw body of a feed.

        Args:
            url: Feed URL
            session: Shared aiohttp session; a private one is opened if omitted

        Returns:
            Response body bytes (only for HTTP 200)

        Raises:
            HTTPStatusError: Server answered with a non-200 status
            NetworkError: Connection, I/O or timeout failure
        """
        if session is None:
            async with self.get_session() as own_session:
                return await self._fetch_with_session(url, own_session)

        return await self._fetch_with_session(url, session)

    async def _fetch_with_session(
        self, url: str, session: aiohttp.ClientSession
    ) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {"User-Agent": self.user_agent}

        try:
            with PerformanceLogger(self.logger, "feed fetch", feed_url=url) as perf:
                async with session.get(url, timeout=timeout, headers=headers) as response:
                    if response.status != 200:
                        raise HTTPStatusError(
                            f"HTTP {response.status}: {response.reason}",
                            status=response.status,
                            feed_url=url,
                        )

                    body = await response.read()

        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Request timeout after {self.timeout}s",
                feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e

        except aiohttp.ClientError as e:
            raise NetworkError(f"Fetch error: {e}", feed_url=url) from e

        self.logger.debug(
            f"Fetched {len(body)} bytes from {url} in {perf.duration:.2f}s"
        )
        return body
