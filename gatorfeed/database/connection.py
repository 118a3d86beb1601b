"""
GatorFeed Database Connection Management
========================================

Connection pool and transaction management for SQLite with error handling
and sensible pragmas.
"""

import sqlite3
import threading
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator
from queue import Queue, Empty, Full

from .schema import DatabaseSchema
from ..utils.exceptions import DatabaseError, ErrorCode

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Thread-safe SQLite database connection manager with pooling."""

    def __init__(self, db_path: str = "data/gator.db", pool_size: int = 5):
        """Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            pool_size: Maximum number of connections in pool
        """
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.pool: Queue = Queue(maxsize=pool_size)
        self.lock = threading.Lock()
        self._total_connections = 0

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_pool()

    def _initialize_pool(self) -> None:
        for _ in range(self.pool_size):
            self.pool.put(self._create_connection())

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection with pragmas applied."""
        try:
            conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0  # seconds to wait on a locked database
            )

            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.execute("PRAGMA temp_store = MEMORY")
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Cannot open database {self.db_path}: {e}",
                error_code=ErrorCode.DATABASE_CONNECTION,
                user_message=f"Cannot open database {self.db_path}",
                recoverable=False,
            ) from e

        conn.row_factory = sqlite3.Row

        with self.lock:
            self._total_connections += 1

        logger.debug(f"Created database connection #{self._total_connections}")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a connection from the pool with automatic return.

        Usage:
            with db.get_connection() as conn:
                rows = conn.execute("SELECT * FROM feeds").fetchall()
        """
        start_time = time.time()
        conn = None

        try:
            try:
                conn = self.pool.get(timeout=10.0)
            except Empty:
                logger.warning("Connection pool exhausted, creating new connection")
                conn = self._create_connection()

            acquisition_time = time.time() - start_time
            if acquisition_time > 1.0:
                logger.warning(f"Database connection acquisition took {acquisition_time:.2f}s")

            yield conn

        except sqlite3.Error as e:
            logger.debug(f"Database error on pooled connection: {e}")
            if conn is not None:
                try:
                    conn.rollback()
                except sqlite3.Error:
                    logger.warning("Rollback after database error failed")
            raise
        finally:
            if conn is not None:
                self._release(conn)

    def _release(self, conn: sqlite3.Connection) -> None:
        try:
            self.pool.put_nowait(conn)
        except Full:
            conn.close()
            with self.lock:
                self._total_connections -= 1

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Execute operations within a database transaction.

        Commits on success, rolls back on any exception.
        """
        with self.get_connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Transaction rolled back due to error: {e}")
                raise

    def close_all_connections(self) -> None:
        """Close all connections in the pool."""
        logger.debug("Closing all database connections")

        while True:
            try:
                conn = self.pool.get_nowait()
            except Empty:
                break
            conn.close()

        with self.lock:
            self._total_connections = 0


# Global database manager instance
_db_manager: Optional[DatabaseConnection] = None


def get_db_manager(db_path: str = "data/gator.db", pool_size: int = 5) -> DatabaseConnection:
    """Get global database manager instance (singleton pattern).

    The schema is created and verified on first use.

    Raises:
        DatabaseError: If the database cannot be opened or a table is missing
    """
    global _db_manager

    if _db_manager is None:
        schema = DatabaseSchema(db_path)
        schema.create_tables()
        if not schema.verify_schema():
            raise DatabaseError(
                f"Database schema at {db_path} is incomplete",
                error_code=ErrorCode.DATABASE_SCHEMA,
                recoverable=False,
            )
        _db_manager = DatabaseConnection(db_path, pool_size=pool_size)

    return _db_manager
