"""
Persistence Gateway
===================

The storage operations the ingestion engine depends on, and their SQLite
implementation over the feed and post repositories.

Implementations must classify their failures: ``select_next_feed`` raises
:class:`NoFeedsAvailableError` when there is nothing to fetch, and
``create_post`` raises :class:`DuplicateKeyError` for a URL that is already
stored and :class:`DatabaseError` for anything else.
"""

from typing import Protocol, runtime_checkable

from ..database.connection import DatabaseConnection
from ..database.models import Feed, NewPost, Post
from .feed_repository import FeedRepository
from .post_repository import PostRepository


@runtime_checkable
class PersistenceGateway(Protocol):
    """Storage interface consumed by the ingestion engine."""

    def select_next_feed(self) -> Feed:
        ...

    def mark_feed_fetched(self, feed_id: str) -> None:
        ...

    def create_post(self, item: NewPost) -> Post:
        ...


class RepositoryGateway:
    """PersistenceGateway backed by the SQLite repositories."""

    def __init__(
        self,
        feed_repository: FeedRepository,
        post_repository: PostRepository,
    ):
        self.feeds = feed_repository
        self.posts = post_repository

    @classmethod
    def from_connection(cls, db_connection: DatabaseConnection) -> "RepositoryGateway":
        return cls(FeedRepository(db_connection), PostRepository(db_connection))

    def select_next_feed(self) -> Feed:
        return self.feeds.select_next_feed()

    def mark_feed_fetched(self, feed_id: str) -> None:
        self.feeds.mark_feed_fetched(feed_id)

    def create_post(self, item: NewPost) -> Post:
        return self.posts.create_post(item)
