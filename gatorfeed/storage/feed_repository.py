"""
Feed Repository
===============

Repository pattern implementation for RSS feed data management.
Provides database abstraction for feed creation, lookup, and the
fetch bookkeeping used by the ingestion scheduler.
"""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Feed, FeedWithOwner, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import (
    DatabaseError,
    DuplicateKeyError,
    ErrorCode,
    NoFeedsAvailableError,
)


class FeedRepository:
    """Repository for managing RSS feed data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(self, name: str, url: str, user_id: str) -> Feed:
        """Create a new feed in the database.

        Args:
            name: Display name
            url: Feed URL (unique)
            user_id: Owning user ID

        Returns:
            Created Feed

        Raises:
            DuplicateKeyError: If a feed with this URL already exists
            DatabaseError: If database operation fails
        """
        feed = Feed(name=name, url=url, user_id=user_id)
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO feeds (
                        id, name, url, user_id, created_at, updated_at, last_fetched_at
                    ) VALUES (?, ?, ?, ?, ?, ?, NULL)
                """,
                    (
                        feed.id,
                        feed.name,
                        feed.url,
                        feed.user_id,
                        to_db_timestamp(feed.created_at),
                        to_db_timestamp(feed.updated_at),
                    ),
                )
                conn.commit()

        except sqlite3.IntegrityError as e:
            if "feeds.url" in str(e):
                raise DuplicateKeyError(
                    f"Feed already exists: {url}", key=url,
                    user_message=f"A feed with URL {url} already exists",
                ) from e
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_CONSTRAINT
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create feed: {e}") from e

        self.logger.info(f"Created feed {feed.id}: {feed.url}")
        return feed

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM feeds WHERE id = ?", (feed_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get feed {feed_id}: {e}") from e

        return self._row_to_feed(row) if row else None

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM feeds WHERE url = ?", (url,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get feed by URL {url}: {e}") from e

        return self._row_to_feed(row) if row else None

    def list_feeds_with_owner(self) -> List[FeedWithOwner]:
        """All feeds with the name of the user who added each."""
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT feeds.*, users.name AS user_name
                    FROM feeds JOIN users ON users.id = feeds.user_id
                    ORDER BY feeds.created_at
                    """
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list feeds: {e}") from e

        return [
            FeedWithOwner(feed=self._row_to_feed(row), user_name=row["user_name"])
            for row in rows
        ]

    def select_next_feed(self) -> Feed:
        """Pick the feed fetched least recently.

        Never-fetched feeds (NULL last_fetched_at) come first; ties are broken
        by creation order.

        Raises:
            NoFeedsAvailableError: If there are no feeds
            DatabaseError: If the query fails
        """
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    """
                    SELECT * FROM feeds
                    ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC,
                             created_at ASC, id ASC
                    LIMIT 1
                    """
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to select next feed: {e}") from e

        if row is None:
            raise NoFeedsAvailableError()

        return self._row_to_feed(row)

    def mark_feed_fetched(self, feed_id: str, fetched_at: Optional[datetime] = None) -> None:
        """Set last_fetched_at to now.

        The update never moves the timestamp backwards; an older
        ``fetched_at`` leaves the stored value untouched.

        Raises:
            DatabaseError: If the feed does not exist or the update fails
        """
        fetched_at = to_db_timestamp(fetched_at or datetime.now(timezone.utc))
        exists = None

        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    UPDATE feeds
                    SET last_fetched_at = ?, updated_at = ?
                    WHERE id = ? AND (last_fetched_at IS NULL OR last_fetched_at <= ?)
                    """,
                    (fetched_at, fetched_at, feed_id, fetched_at),
                )
                updated = cursor.rowcount
                if not updated:
                    exists = conn.execute(
                        "SELECT 1 FROM feeds WHERE id = ?", (feed_id,)
                    ).fetchone()
                conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to mark feed {feed_id} fetched: {e}") from e

        if not updated and not exists:
            raise DatabaseError(
                f"No feed found with ID {feed_id}",
                error_code=ErrorCode.RESOURCE_NOT_FOUND,
                recoverable=False,
            )

        self.logger.debug(f"Marked feed {feed_id} fetched at {fetched_at}")

    def _row_to_feed(self, row) -> Feed:
        """Convert database row to Feed object."""
        return Feed(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            user_id=row["user_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_fetched_at=row["last_fetched_at"],
        )
