"""
Post Repository
===============

Repository pattern implementation for ingested posts. The post URL is the
de-duplication key: inserting a URL that is already stored raises
:class:`DuplicateKeyError` instead of the storage engine's own error.
"""

import sqlite3
from typing import List, Optional

from ..database.models import NewPost, Post, PostView, to_db_timestamp
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, DuplicateKeyError, ErrorCode


class PostRepository:
    """Repository for Post CRUD operations with database abstraction."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize post repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("post_repository")

    def create_post(self, item: NewPost) -> Post:
        """Store a normalized item.

        Args:
            item: Item to insert

        Returns:
            Created Post

        Raises:
            DuplicateKeyError: If a post with the same URL already exists
            DatabaseError: If creation fails for any other reason
        """
        post = Post.from_new_post(item)

        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO posts (id, feed_id, title, url, description,
                                       published_at, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        post.id, post.feed_id, post.title, post.url, post.description,
                        to_db_timestamp(post.published_at),
                        to_db_timestamp(post.created_at),
                        to_db_timestamp(post.updated_at),
                    )
                )
                conn.commit()

        except sqlite3.IntegrityError as e:
            if self._is_url_conflict(e):
                raise DuplicateKeyError(
                    f"Post already stored: {post.url}", key=post.url
                ) from e
            raise DatabaseError(
                f"Failed to create post: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create post: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.debug(f"Created post {post.id}: {post.url}")
        return post

    @staticmethod
    def _is_url_conflict(error: sqlite3.IntegrityError) -> bool:
        # sqlite reports "UNIQUE constraint failed: posts.url"
        return "posts.url" in str(error)

    def get_post_by_url(self, url: str) -> Optional[Post]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM posts WHERE url = ?",
                    (url,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get post {url}: {e}") from e

        return Post(**dict(row)) if row else None

    def get_posts_for_feed(self, feed_id: str, limit: int = 100) -> List[Post]:
        """Posts of one feed in insertion order."""
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM posts
                    WHERE feed_id = ?
                    ORDER BY created_at ASC
                    LIMIT ?
                    """,
                    (feed_id, limit)
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get posts for feed {feed_id}: {e}") from e

        return [Post(**dict(row)) for row in rows]

    def get_posts_for_user(self, user_id: str, limit: int = 2) -> List[PostView]:
        """Newest posts from the feeds a user follows.

        Posts without a publish date sort after dated ones.

        Args:
            user_id: Following user
            limit: Maximum number of posts to return
        """
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT posts.*, feeds.name AS feed_name
                    FROM posts
                    JOIN feeds ON feeds.id = posts.feed_id
                    JOIN feed_follows ON feed_follows.feed_id = posts.feed_id
                    WHERE feed_follows.user_id = ?
                    ORDER BY posts.published_at IS NULL, posts.published_at DESC,
                             posts.created_at DESC
                    LIMIT ?
                    """,
                    (user_id, limit)
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get posts for user {user_id}: {e}") from e

        views = []
        for row in rows:
            data = dict(row)
            feed_name = data.pop("feed_name")
            views.append(PostView(post=Post(**data), feed_name=feed_name))
        return views

    def count_posts(self, feed_id: Optional[str] = None) -> int:
        try:
            with self.db.get_connection() as conn:
                if feed_id:
                    row = conn.execute(
                        "SELECT COUNT(*) FROM posts WHERE feed_id = ?", (feed_id,)
                    ).fetchone()
                else:
                    row = conn.execute("SELECT COUNT(*) FROM posts").fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to count posts: {e}") from e

        return row[0]
