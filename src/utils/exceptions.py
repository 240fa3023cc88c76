"""
Custom exceptions for the live flight snapshot service.

Provides a hierarchy of exceptions for different error scenarios:
- API errors (OpenSky live states and historical flights)
- Storage errors (snapshot writes, pointer promotion, reaping)
- Configuration errors

A 404 from the historical flights API is not an error: the client
returns an empty list for it.
"""


class FlightServiceError(Exception):
    """Base exception for all flight service errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


# =============================================================================
# API Exceptions
# =============================================================================

class APIError(FlightServiceError):
    """Base exception for API-related errors."""
    pass


class OpenSkyAPIError(APIError):
    """Non-2xx (and non-404 where 404 means "no data") response from OpenSky."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class AuthenticationError(APIError):
    """Missing or rejected OpenSky client credentials. Never retried."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(APIError):
    """Error when API rate limit is exceeded."""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class APIConnectionError(APIError):
    """Error when unable to connect to the API."""
    pass


class APITimeoutError(APIError):
    """Error when API request times out."""

    def __init__(self, message: str, timeout: float | None = None):
        self.timeout = timeout
        super().__init__(message)


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageError(FlightServiceError):
    """Base exception for storage-related errors."""
    pass


class DatabaseError(StorageError):
    """Error when reading from or writing to the snapshot database."""
    pass


class SnapshotWriteError(StorageError):
    """A batch of a new snapshot could not be written."""

    def __init__(self, message: str, snapshot_time: int | None = None):
        self.snapshot_time = snapshot_time
        super().__init__(message)


class SnapshotConflictError(StorageError):
    """The active snapshot pointer moved underneath a compare-and-swap promotion."""

    def __init__(self, expected: int | None, actual: int | None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Active snapshot changed during refresh: expected {expected}, found {actual}"
        )


class SnapshotReapError(StorageError):
    """Deleting the rows of a superseded snapshot failed part way."""

    def __init__(self, message: str, snapshot_time: int | None = None, rows_deleted: int = 0):
        self.snapshot_time = snapshot_time
        self.rows_deleted = rows_deleted
        super().__init__(message)


class RefreshRecordError(DatabaseError):
    """Error when creating or querying refresh run records."""
    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(FlightServiceError):
    """Error with service configuration."""
    pass


# Export all exceptions
__all__ = [
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
