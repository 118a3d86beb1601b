"""
GatorFeed Ingestion Module
==========================

RSS feed ingestion components.

This module handles:
- Fetching feed documents over HTTP
- Decoding and normalizing channels, items and publish dates
- Running ingestion cycles against the persistence gateway
- Plain-text extraction from item descriptions
"""

from .content_cleaner import strip_markup, summarize
from .engine import CycleResult, CycleStatus, IngestionEngine
from .fetcher import FeedFetcher
from .normalizer import (
    FeedChannel,
    FeedItem,
    FeedNormalizer,
    RawFeedDocument,
    parse_published_date,
)

__all__ = [
    "strip_markup",
    "summarize",
    "CycleResult",
    "CycleStatus",
    "IngestionEngine",
    "FeedFetcher",
    "FeedChannel",
    "FeedItem",
    "FeedNormalizer",
    "RawFeedDocument",
    "parse_published_date",
]
