"""
Feed Follow Repository
======================

Repository for user subscriptions to feeds.
"""

import sqlite3
from typing import List

from ..database.connection import DatabaseConnection
from ..database.models import FeedFollow, FollowedFeed, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, DuplicateKeyError, ErrorCode


class FeedFollowRepository:
    """Repository for managing feed follows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("feed_follow_repository")

    def create_follow(self, user_id: str, feed_id: str) -> FollowedFeed:
        """Subscribe a user to a feed.

        Returns:
            The new follow joined with user and feed names

        Raises:
            DuplicateKeyError: If the user already follows the feed
            DatabaseError: If the insert fails for any other reason
        """
        follow = FeedFollow(user_id=user_id, feed_id=feed_id)
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO feed_follows (id, user_id, feed_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        follow.id,
                        follow.user_id,
                        follow.feed_id,
                        to_db_timestamp(follow.created_at),
                        to_db_timestamp(follow.updated_at),
                    ),
                )
                row = conn.execute(
                    """
                    SELECT users.name AS user_name, feeds.name AS feed_name,
                           feeds.url AS feed_url
                    FROM users, feeds
                    WHERE users.id = ? AND feeds.id = ?
                    """,
                    (user_id, feed_id),
                ).fetchone()
                conn.commit()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateKeyError(
                    f"User {user_id} already follows feed {feed_id}",
                    key=f"{user_id}:{feed_id}",
                    user_message="You already follow this feed",
                ) from e
            raise DatabaseError(
                f"Failed to create feed follow: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create feed follow: {e}") from e

        self.logger.info(f"User {row['user_name']} now follows {row['feed_name']}")
        return FollowedFeed(
            follow=follow,
            user_name=row["user_name"],
            feed_name=row["feed_name"],
            feed_url=row["feed_url"],
        )

    def list_follows_for_user(self, user_id: str) -> List[FollowedFeed]:
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT feed_follows.*, users.name AS user_name,
                           feeds.name AS feed_name, feeds.url AS feed_url
                    FROM feed_follows
                    JOIN users ON users.id = feed_follows.user_id
                    JOIN feeds ON feeds.id = feed_follows.feed_id
                    WHERE feed_follows.user_id = ?
                    ORDER BY feed_follows.created_at
                    """,
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list follows for user {user_id}: {e}") from e

        return [
            FollowedFeed(
                follow=FeedFollow(
                    id=row["id"],
                    user_id=row["user_id"],
                    feed_id=row["feed_id"],
                    created_at=row["created_at"],
                    updated_at=row["updated_at"],
                ),
                user_name=row["user_name"],
                feed_name=row["feed_name"],
                feed_url=row["feed_url"],
            )
            for row in rows
        ]

    def delete_follow(self, user_id: str, feed_id: str) -> bool:
        """Remove a follow.

        Returns:
            True if a follow was deleted
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM feed_follows WHERE user_id = ? AND feed_id = ?",
                    (user_id, feed_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to delete feed follow: {e}") from e

        return cursor.rowcount > 0
