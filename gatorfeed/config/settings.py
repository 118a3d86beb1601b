"""
GatorFeed Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables (prefix ``GATOR_``, nested delimiter ``__``) override
Field defaults, e.g. ``GATOR_INGESTION__POLL_INTERVAL=30s``.
"""

from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode
from ..utils.validators import parse_poll_interval


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Accepted publish-date layouts, tried in order; first match wins.
DEFAULT_DATE_LAYOUTS: List[str] = [
    "%a, %d %b %Y %H:%M:%S %Z",  # RFC1123
    "%a, %d %b %Y %H:%M:%S %z",  # RFC1123 with numeric zone
    "%d %b %y %H:%M %Z",  # RFC822
    "%d %b %y %H:%M %z",  # RFC822 with numeric zone
    "%Y-%m-%dT%H:%M:%S%z",  # RFC3339
    "%a, %d %b %Y %H:%M %z",  # without seconds
    "%d %b %y %H:%M:%S %z",  # numeric offset with seconds
]

DEFAULT_USER_AGENT = "Gator/1.0 (Linux; Custom Client)"


class IngestionSettings(BaseModel):
    """Feed polling and parsing configuration."""
    poll_interval: str = Field(default="1m", description="Time between ingestion cycles, <integer><s|m|h>")
    request_timeout: float = Field(default=10.0, gt=0, le=300, description="Whole round-trip budget per fetch in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1, description="User-Agent header sent with every fetch")
    date_layouts: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DATE_LAYOUTS),
        min_length=1,
        description="strptime layouts for item publish dates, in priority order",
    )

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v):
        """Reject intervals that the scheduler could not run with."""
        parse_poll_interval(v)
        return v.strip()


class DatabaseSettings(BaseModel):
    """Database configuration."""
    path: str = Field(default="data/gator.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/gator.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class GatorSettings(BaseSettings):
    """Main application settings."""

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    session_file: str = Field(
        default_factory=lambda: str(Path.home() / ".gatorconfig.json"),
        description="JSON file holding the logged-in user",
    )

    app_name: str = Field(default="Gator", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "GATOR_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate paths the application will write to."""
        errors = []

        try:
            Path(self.database.path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid database path: {e}")

        if self.logging.file_path:
            try:
                Path(self.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> GatorSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = GatorSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[GatorSettings] = None


def get_settings(reload: bool = False) -> GatorSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
