"""
GatorFeed Custom Exceptions
===========================

Exception hierarchy for GatorFeed with error codes, context information,
and user-friendly error messages.

Every failure inside an ingestion cycle is classified into one of these
types so the scheduler can log and absorb it without inspecting the
underlying library error.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"
    CONFIG_INVALID_INTERVAL = "C004"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_SCHEMA = "D002"
    DATABASE_CONSTRAINT = "D003"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_NOT_FOUND = "F006"
    FEED_NONE_AVAILABLE = "F007"
    FEED_HTTP_STATUS = "F008"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Resource management errors (R001-R099)
    RESOURCE_NOT_FOUND = "R002"


class GatorError(Exception):
    """Base exception for all GatorFeed errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize GatorFeed error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _passthrough(kwargs: Dict[str, Any], *consumed: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in consumed}


class ConfigurationError(GatorError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_passthrough(kwargs, "context", "error_code", "user_message"),
        )


class InvalidIntervalError(ConfigurationError):
    """Poll interval is not a well-formed positive duration."""

    def __init__(self, message: str, value: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if value is not None:
            context["value"] = value

        super().__init__(
            message,
            config_key="poll_interval",
            context=context,
            error_code=ErrorCode.CONFIG_INVALID_INTERVAL,
            user_message=kwargs.pop(
                "user_message",
                f"Invalid poll interval {value!r}: use <integer><s|m|h>, e.g. 30s or 1m",
            ),
            **kwargs,
        )
        self.value = value


class DatabaseError(GatorError):
    """Database-related errors."""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """Initialize database error.

        Args:
            message: Error message
            query: SQL query that caused the error
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if query:
            context["query"] = query

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DATABASE_ERROR),
            context=context,
            user_message=kwargs.get("user_message", "Database operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class DuplicateKeyError(DatabaseError):
    """Insert rejected because a row with the same unique key already exists.

    Raised by repositories in place of the storage engine's own constraint
    error, so callers can treat a repeated insert as an expected outcome.
    """

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if key is not None:
            context["key"] = key

        super().__init__(
            message,
            context=context,
            error_code=ErrorCode.DATABASE_CONSTRAINT,
            user_message=kwargs.pop("user_message", "Item already exists"),
            **kwargs,
        )
        self.key = key


class ResourceNotFoundError(GatorError):
    """A referenced user, feed or follow does not exist."""

    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if resource:
            context["resource"] = resource

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.RESOURCE_NOT_FOUND),
            context=context,
            user_message=kwargs.pop("user_message", message),
            **kwargs,
        )


class FeedError(GatorError):
    """Feed ingestion and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_FETCH_TIMEOUT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )
        self.feed_url = feed_url


class FeedSelectionError(FeedError):
    """Errors raised while choosing the next feed to refresh."""

    pass


class NoFeedsAvailableError(FeedSelectionError):
    """There are no feeds to refresh."""

    def __init__(self, message: str = "No feeds available to fetch", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NONE_AVAILABLE)
        kwargs.setdefault("user_message", "No feeds have been added yet")
        super().__init__(message, **kwargs)


class FeedFetchError(FeedError):
    """RSS feed fetching errors."""

    pass


class NetworkError(FeedFetchError):
    """Connection, I/O or timeout failure while fetching a feed."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NETWORK_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class HTTPStatusError(FeedFetchError):
    """Feed server answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status: int,
        feed_url: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        context["status"] = status
        kwargs.setdefault("error_code", ErrorCode.FEED_HTTP_STATUS)
        super().__init__(message, feed_url=feed_url, context=context, **kwargs)
        self.status = status


class DecodeError(FeedError):
    """Feed body could not be decoded as XML."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_PARSE_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class ValidationError(GatorError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )

