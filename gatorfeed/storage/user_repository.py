"""
User Repository
===============

Repository for registered users.
"""

import sqlite3
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import User, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, DuplicateKeyError, ErrorCode


class UserRepository:
    """Repository for managing users in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("user_repository")

    def create_user(self, name: str) -> User:
        """Register a new user.

        Raises:
            DuplicateKeyError: If the name is already taken
            DatabaseError: If the insert fails for any other reason
        """
        user = User(name=name)
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO users (id, name, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        user.id,
                        user.name,
                        to_db_timestamp(user.created_at),
                        to_db_timestamp(user.updated_at),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(
                f"User {name!r} already exists", key=name,
                user_message=f"User {name!r} already exists",
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to create user: {e}") from e

        self.logger.info(f"Created user {user.name}")
        return user

    def get_user_by_name(self, name: str) -> Optional[User]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM users WHERE name = ?", (name,)
                ).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get user {name}: {e}") from e

        return User(**dict(row)) if row else None

    def list_users(self) -> List[User]:
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM users ORDER BY name"
                ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to list users: {e}") from e

        return [User(**dict(row)) for row in rows]

    def reset(self) -> int:
        """Delete every user; feeds, follows and posts cascade.

        Returns:
            Number of users deleted
        """
        try:
            with self.db.transaction() as conn:
                cursor = conn.execute("DELETE FROM users")
                deleted = cursor.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to reset users: {e}", error_code=ErrorCode.DATABASE_TRANSACTION
            ) from e

        self.logger.info(f"Deleted {deleted} users")
        return deleted
