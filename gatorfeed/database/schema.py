"""
GatorFeed Database Schema
=========================

SQLite database schema with foreign key constraints and indexes.

Tables:
- users: registered users
- feeds: RSS feed sources, each owned by the user who added it
- feed_follows: user subscriptions to feeds
- posts: ingested feed items, unique by URL
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class DatabaseSchema:
    """Database schema manager for the GatorFeed SQLite database."""

    TABLES = ("users", "feeds", "feed_follows", "posts")

    def __init__(self, db_path: str = "data/gator.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables with proper schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            # Create tables in dependency order
            self._create_users_table(conn)
            self._create_feeds_table(conn)
            self._create_feed_follows_table(conn)
            self._create_posts_table(conn)

            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_users_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_feeds_table(self, conn: sqlite3.Connection) -> None:
        """Create feeds table; last_fetched_at stays NULL until the first cycle."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feeds (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                url TEXT UNIQUE NOT NULL,
                user_id TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                last_fetched_at TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """
        )

    def _create_feed_follows_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feed_follows (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                feed_id TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE,
                UNIQUE(user_id, feed_id)
            )
        """
        )

    def _create_posts_table(self, conn: sqlite3.Connection) -> None:
        """Create posts table; url is the de-duplication key."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS posts (
                id TEXT PRIMARY KEY,
                feed_id TEXT NOT NULL,
                title TEXT NOT NULL,
                url TEXT UNIQUE NOT NULL,
                description TEXT,
                published_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for optimal query performance."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_feeds_last_fetched ON feeds(last_fetched_at)",
            "CREATE INDEX IF NOT EXISTS idx_feeds_user ON feeds(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_feed_follows_user ON feed_follows(user_id)",
            "CREATE INDEX IF NOT EXISTS idx_posts_feed ON posts(feed_id)",
            "CREATE INDEX IF NOT EXISTS idx_posts_published ON posts(published_at)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with foreign keys enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def verify_schema(self) -> bool:
        """Verify database schema is correctly created."""
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
            """
            )
            tables = {row[0] for row in cursor.fetchall()}
        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False
        finally:
            conn.close()

        missing = set(self.TABLES) - tables
        if missing:
            logger.error(f"Missing tables: {sorted(missing)}")
            return False

        logger.info("Database schema verification passed")
        return True

