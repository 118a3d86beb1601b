"""
Feed Normalizer
===============

Decodes a raw RSS body into channel metadata and items, unescapes HTML
entities in titles and descriptions, and parses item publish dates against
an ordered list of layouts.

Items are returned in document order. An item whose publish date matches
none of the layouts is kept with ``published_at = None``.
"""

import html
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

import feedparser

from ..config.settings import DEFAULT_DATE_LAYOUTS
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DecodeError


# UTC offsets (hours) for zone abbreviations found in RFC822/RFC1123 dates.
ZONE_OFFSETS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}


# Fractional seconds written straight after an HH:MM:SS field.
FRACTION_PATTERN = re.compile(r"(?<=:\d\d)\.(\d+)")


@dataclass
class FeedChannel:
    """Channel-level metadata of a decoded feed."""

    title: str
    link: str
    description: str


@dataclass
class FeedItem:
    """A single decoded feed item."""

    title: str
    link: str
    description: str
    pub_date: str = ""
    published_at: Optional[datetime] = None


@dataclass
class RawFeedDocument:
    """Decoded feed: channel metadata plus items in document order."""

    channel: FeedChannel
    items: List[FeedItem] = None

    def __post_init__(self):
        """Initialize default values after dataclass creation."""
        if self.items is None:
            self.items = []


def _parse_with_zone_name(text: str, layout: str) -> Optional[datetime]:
    # strptime cannot resolve most zone abbreviations, so the trailing
    # name is looked up here and the rest parsed without it.
    head, _, zone = text.rpartition(" ")
    if not head or not zone.isalpha():
        return None

    try:
        value = datetime.strptime(head, layout[:-2].rstrip())
    except ValueError:
        return None

    offset = ZONE_OFFSETS.get(zone.upper(), 0)
    return value.replace(tzinfo=timezone(timedelta(hours=offset)))


def _parse_layout(text: str, layout: str) -> Optional[datetime]:
    if layout.endswith("%Z"):
        return _parse_with_zone_name(text, layout)
    try:
        return datetime.strptime(text, layout)
    except ValueError:
        return None


def _parse_with_fraction(text: str, layout: str) -> Optional[datetime]:
    """Retry a seconds layout with a fractional seconds field removed.

    Layouts never spell the fraction out, yet feeds often write
    ``15:04:05.123``. Digits past microseconds are dropped.
    """
    match = FRACTION_PATTERN.search(text)
    if match is None or "%S" not in layout or "%f" in layout:
        return None

    parsed = _parse_layout(text[:match.start()] + text[match.end():], layout)
    if parsed is None:
        return None
    return parsed.replace(microsecond=int(match.group(1)[:6].ljust(6, "0")))


def parse_published_date(
    raw: Optional[str], layouts: Sequence[str] = DEFAULT_DATE_LAYOUTS
) -> Optional[datetime]:
    """Parse a publish date string against layouts in order.

    The input is trimmed first; the first layout that matches wins. A
    trailing ``%Z`` accepts a zone abbreviation; unknown abbreviations are
    read as UTC. Any layout with seconds also accepts a fractional seconds
    field. Wall-clock values are kept as written.

    Args:
        raw: Date string from the feed
        layouts: strptime layouts in priority order

    Returns:
        Timezone-aware datetime, or None if nothing matched
    """
    text = (raw or "").strip()
    if not text:
        return None

    for layout in layouts:
        parsed = _parse_layout(text, layout)
        if parsed is None:
            parsed = _parse_with_fraction(text, layout)

        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    return None


class FeedNormalizer:
    """Turns raw feed bytes into a :class:`RawFeedDocument`."""

    def __init__(self, date_layouts: Optional[Sequence[str]] = None):
        if date_layouts is None:
            date_layouts = DEFAULT_DATE_LAYOUTS
        self.date_layouts = list(date_layouts)
        self.logger = get_logger_for_component("normalizer")

    def normalize(self, raw: bytes, feed_url: Optional[str] = None) -> RawFeedDocument:
        """Decode and normalize a feed body.

        Args:
            raw: Response body
            feed_url: Source URL, for error context

        Returns:
            Normalized document

        Raises:
            DecodeError: If the body is not a well-formed feed
        """
        if not raw or not raw.strip():
            raise DecodeError("Feed body is empty", feed_url=feed_url)

        # Descriptions are stored as published; markup is only stripped for display.
        feed_data = feedparser.parse(raw, sanitize_html=False, resolve_relative_uris=False)

        if feed_data.bozo and not isinstance(
            feed_data.bozo_exception, feedparser.CharacterEncodingOverride
        ):
            raise DecodeError(
                f"Feed parse error: {feed_data.bozo_exception}",
                feed_url=feed_url,
            )

        channel = FeedChannel(
            title=self._unescape(feed_data.feed.get("title")),
            link=feed_data.feed.get("link", ""),
            description=self._unescape(feed_data.feed.get("description")),
        )

        items = [self._extract_item(entry) for entry in feed_data.entries]

        unparsed = sum(1 for item in items if item.pub_date and item.published_at is None)
        if unparsed:
            self.logger.debug(
                f"{unparsed} of {len(items)} items in {feed_url or 'feed'} "
                f"have an unrecognised publish date"
            )

        return RawFeedDocument(channel=channel, items=items)

    def _extract_item(self, entry: Any) -> FeedItem:
        pub_date = entry.get("published") or entry.get("updated") or ""

        return FeedItem(
            title=self._unescape(entry.get("title")),
            link=entry.get("link", ""),
            description=self._unescape(entry.get("description")),
            pub_date=pub_date,
            published_at=parse_published_date(pub_date, self.date_layouts),
        )

    @staticmethod
    def _unescape(value: Optional[str]) -> str:
        return html.unescape(value or "")
