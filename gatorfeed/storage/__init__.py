"""
GatorFeed Storage Layer
=======================

Repository pattern implementations for data access abstraction.

This module provides:
- User, feed, feed-follow and post repositories
- The persistence gateway consumed by the ingestion engine
"""

from .user_repository import UserRepository
from .feed_repository import FeedRepository
from .feed_follow_repository import FeedFollowRepository
from .post_repository import PostRepository
from .gateway import PersistenceGateway, RepositoryGateway

__all__ = [
    "UserRepository",
    "FeedRepository",
    "FeedFollowRepository",
    "PostRepository",
    "PersistenceGateway",
    "RepositoryGateway",
]
