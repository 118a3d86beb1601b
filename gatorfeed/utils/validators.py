"""
GatorFeed Input Validators
==========================

Validation utilities for poll intervals, feed URLs and user-supplied names.
"""

import re
from datetime import timedelta
from urllib.parse import urlparse

from .exceptions import InvalidIntervalError, ValidationError, ErrorCode


class IntervalValidator:
    """Parsing of `<integer><unit>` poll interval strings."""

    INTERVAL_PATTERN = re.compile(r"^(\d+)([smh])$")

    UNIT_SECONDS = {
        "s": 1,
        "m": 60,
        "h": 60 * 60,
    }

    @classmethod
    def parse(cls, value: str) -> timedelta:
        """Convert an interval string such as ``30s``, ``1m`` or ``2h``.

        Args:
            value: Interval text

        Returns:
            Exact inter-cycle delay

        Raises:
            InvalidIntervalError: If the text is malformed or not positive
        """
        if not isinstance(value, str):
            raise InvalidIntervalError("Poll interval must be a string", value=value)

        text = value.strip()
        match = cls.INTERVAL_PATTERN.match(text)
        if not match:
            raise InvalidIntervalError(
                f"Malformed poll interval: {value!r}", value=value
            )

        magnitude = int(match.group(1))
        if magnitude <= 0:
            raise InvalidIntervalError(
                f"Poll interval must be positive: {value!r}", value=value
            )

        return timedelta(seconds=magnitude * cls.UNIT_SECONDS[match.group(2)])


def parse_poll_interval(value: str) -> timedelta:
    """Module-level shortcut for :meth:`IntervalValidator.parse`."""
    return IntervalValidator.parse(value)


def format_interval(interval: timedelta) -> str:
    """Render a delay back in the largest exact unit (``90s`` stays ``90s``)."""
    total = interval.total_seconds()
    if total != int(total):
        return f"{total:g}s"

    seconds = int(total)
    if seconds and seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds and seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


class URLValidator:
    """URL validation for feed subscriptions."""

    ALLOWED_SCHEMES = {"http", "https"}

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate and normalize RSS feed URL.

        Args:
            url: URL to validate

        Returns:
            Stripped URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url",
            )

        url = url.strip()
        parsed = urlparse(url)

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(sorted(cls.ALLOWED_SCHEMES))}",
                error_code=ErrorCode.FEED_INVALID_URL,
                field_name="url",
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.FEED_INVALID_URL,
                field_name="url",
            )

        return url


class NameValidator:
    """Validation for user and feed display names."""

    MAX_LENGTH = 255

    @classmethod
    def validate(cls, name: str, field_name: str = "name") -> str:
        if not name or not isinstance(name, str) or not name.strip():
            raise ValidationError(
                f"{field_name} cannot be empty",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name=field_name,
            )

        name = name.strip()
        if len(name) > cls.MAX_LENGTH:
            raise ValidationError(
                f"{field_name} is too long (max {cls.MAX_LENGTH} characters)",
                field_name=field_name,
            )
        return name
