"""
Ingestion Engine
================

One ingestion cycle: pick the stalest feed, record the fetch attempt,
download and normalize the feed, and store every item that has a link.

A cycle never raises for an expected failure. Selection, fetch, decode and
per-item storage problems are logged and reported through the returned
:class:`CycleResult`; a failing item does not stop the items after it.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from ..database.models import Feed, NewPost
from ..storage.gateway import PersistenceGateway
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import (
    DatabaseError,
    DecodeError,
    DuplicateKeyError,
    FeedFetchError,
    NoFeedsAvailableError,
)
from .fetcher import FeedFetcher
from .normalizer import FeedItem, FeedNormalizer, RawFeedDocument


class CycleStatus(str, Enum):
    """How an ingestion cycle ended."""
    OK = "ok"
    NO_FEEDS = "no_feeds"
    SELECT_FAILED = "select_failed"
    MARK_FAILED = "mark_failed"
    FETCH_FAILED = "fetch_failed"
    DECODE_FAILED = "decode_failed"
    ERROR = "error"


@dataclass
class CycleResult:
    """Outcome of a single ingestion cycle."""

    status: CycleStatus
    feed: Optional[Feed] = None
    items_found: int = 0
    created: int = 0
    duplicates: int = 0
    failed: int = 0
    skipped: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == CycleStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "feed_id": self.feed.id if self.feed else None,
            "feed_url": self.feed.url if self.feed else None,
            "items_found": self.items_found,
            "posts_created": self.created,
            "posts_duplicate": self.duplicates,
            "posts_failed": self.failed,
            "items_skipped": self.skipped,
            "error": self.error,
        }


class IngestionEngine:
    """Runs ingestion cycles against a persistence gateway."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        fetcher: FeedFetcher,
        normalizer: FeedNormalizer,
    ):
        """Initialize ingestion engine.

        Args:
            gateway: Storage operations for feeds and posts
            fetcher: HTTP feed fetcher
            normalizer: Feed body decoder
        """
        self.gateway = gateway
        self.fetcher = fetcher
        self.normalizer = normalizer
        self.logger = get_logger_for_component("ingestion")

    @asynccontextmanager
    async def open_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """HTTP session that can be shared across cycles."""
        async with self.fetcher.get_session() as session:
            yield session

    async def run_cycle(
        self, session: Optional[aiohttp.ClientSession] = None
    ) -> CycleResult:
        """Run one ingestion cycle.

        Args:
            session: Shared HTTP session; the fetcher opens its own if omitted

        Returns:
            Cycle outcome and counters
        """
        try:
            return await self._run_cycle(session)
        except Exception as e:
            self.logger.error(f"Ingestion cycle failed unexpectedly: {e}", exc_info=True)
            return CycleResult(status=CycleStatus.ERROR, error=str(e))

    async def _run_cycle(self, session: Optional[aiohttp.ClientSession]) -> CycleResult:
        try:
            feed = self.gateway.select_next_feed()
        except NoFeedsAvailableError:
            self.logger.info("No feeds available; nothing to fetch")
            return CycleResult(status=CycleStatus.NO_FEEDS)
        except DatabaseError as e:
            self.logger.error(f"Failed to select next feed: {e}", extra=e.to_dict())
            return CycleResult(status=CycleStatus.SELECT_FAILED, error=str(e))

        # Recorded before fetching so a failing feed still rotates to the back.
        try:
            self.gateway.mark_feed_fetched(feed.id)
        except DatabaseError as e:
            self.logger.error(
                f"Failed to mark feed {feed.name} as fetched: {e}", extra=e.to_dict()
            )
            return CycleResult(status=CycleStatus.MARK_FAILED, feed=feed, error=str(e))

        self.logger.info(f"Fetching feed {feed.name} ({feed.url})")

        try:
            raw = await self.fetcher.fetch(feed.url, session=session)
        except FeedFetchError as e:
            self.logger.error(f"Failed to fetch feed {feed.url}: {e}", extra=e.to_dict())
            return CycleResult(status=CycleStatus.FETCH_FAILED, feed=feed, error=str(e))

        try:
            document = self.normalizer.normalize(raw, feed_url=feed.url)
        except DecodeError as e:
            self.logger.error(f"Failed to decode feed {feed.url}: {e}", extra=e.to_dict())
            return CycleResult(status=CycleStatus.DECODE_FAILED, feed=feed, error=str(e))

        result = self._store_items(feed, document)

        self.logger.info(
            f"Processed feed {feed.name}: {result.created} new posts, "
            f"{result.duplicates} already stored, {result.failed} failed, "
            f"{result.skipped} skipped ({result.items_found} items)",
            extra=result.to_dict(),
        )
        return result

    def _store_items(self, feed: Feed, document: RawFeedDocument) -> CycleResult:
        result = CycleResult(
            status=CycleStatus.OK, feed=feed, items_found=len(document.items)
        )

        with PerformanceLogger(self.logger, "store items", feed_id=feed.id):
            for position, item in enumerate(document.items, start=1):
                if not item.link.strip():
                    result.skipped += 1
                    self.logger.warning(
                        f"Skipping item {position} of {feed.url}: no link "
                        f"(title: {item.title[:80]!r})"
                    )
                    continue

                try:
                    self.gateway.create_post(self._to_new_post(feed, item))
                except DuplicateKeyError:
                    result.duplicates += 1
                    self.logger.debug(f"Post already stored: {item.link}")
                except DatabaseError as e:
                    result.failed += 1
                    self.logger.error(
                        f"Failed to store post {item.link}: {e}", extra=e.to_dict()
                    )
                except Exception as e:
                    result.failed += 1
                    self.logger.error(
                        f"Unexpected error storing post {item.link}: {e}", exc_info=True
                    )
                else:
                    result.created += 1

        return result

    @staticmethod
    def _to_new_post(feed: Feed, item: FeedItem) -> NewPost:
        return NewPost(
            feed_id=feed.id,
            title=item.title,
            url=item.link,
            description=item.description or None,
            published_at=item.published_at,
        )
