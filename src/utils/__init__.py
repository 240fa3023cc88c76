"""
Utility modules for the live flight snapshot service.

Provides:
    - logger: Loguru-based logging with stdout and file output
    - exceptions: Custom exception classes for error handling
"""

from src.utils.logger import logger, setup_logger
from src.utils.exceptions import (
    # Base
    FlightServiceError,
    # API
    APIError,
    OpenSkyAPIError,
    AuthenticationError,
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    # Storage
    StorageError,
    DatabaseError,
    SnapshotWriteError,
    SnapshotConflictError,
    SnapshotReapError,
    RefreshRecordError,
    # Configuration
    ConfigurationError,
)

__all__ = [
    # Logger
    "logger",
    "setup_logger",
    # Base
    "FlightServiceError",
    # API
    "APIError",
    "OpenSkyAPIError",
    "AuthenticationError",
    "RateLimitError",
    "APIConnectionError",
    "APITimeoutError",
    # Storage
    "StorageError",
    "DatabaseError",
    "SnapshotWriteError",
    "SnapshotConflictError",
    "SnapshotReapError",
    "RefreshRecordError",
    # Configuration
    "ConfigurationError",
]
