"""
Gator - RSS Feed Aggregator
===========================

Multi-user RSS aggregator: register users, follow feeds, poll them on an
interval and browse the collected posts from the command line.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables with Pydantic validation
- Ingestion: feed selection, fetching, normalization and storage cycles
- Scheduler: fixed-interval, cancellable ingestion loop
"""

__version__ = "1.0.0"
__author__ = "Gator Development Team"
__description__ = "Multi-user RSS feed aggregator"

# Core imports for easy access
from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import GatorError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "GatorError",
]
