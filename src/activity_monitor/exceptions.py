"""Error types raised by activity-monitor.

    ActivityMonitorError
    ├── ConfigurationError
    │   └── ValidationError
    ├── StorageError
    │   ├── BackendIOError
    │   └── PayloadDecodeError
    ├── CompressionError
    └── CaptureError
"""

from pathlib import Path
from typing import Any

MAX_DETAIL_LENGTH = 100


def _clip(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_DETAIL_LENGTH:
        return text[:MAX_DETAIL_LENGTH] + "..."
    return text


class ActivityMonitorError(Exception):
    """Package error carrying a message and a ``details`` mapping.

    ``str()`` renders the details after the message as ``key=value`` pairs.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        pairs = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({pairs})"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ActivityMonitorError):
    """Preferences file unreadable, or a setting key unknown."""

    def __init__(
        self,
        message: str,
        config_file: Path | None = None,
        key: str | None = None,
    ):
        details: dict[str, Any] = {}
        if config_file:
            details["config_file"] = str(config_file)
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.config_file = config_file
        self.key = key


class ValidationError(ConfigurationError):
    """A storage mode, limit or record field holds an unusable value.

    The offending value is kept whole on ``.value``; only its rendering in
    ``details`` is clipped.
    """

    def __init__(
        self,
        message: str,
        field: str,
        value: Any = None,
        expected: str | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.value = value
        self.expected = expected
        self.details["field"] = field
        if value is not None:
            self.details["value"] = _clip(value)
        if expected:
            self.details["expected"] = expected


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(ActivityMonitorError):
    """Raised when a storage backend operation fails.

    Base class for storage-related errors.
    """

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        cause: Exception | None = None,
    ):
        """Initialize storage error.

        Args:
            message: Error description.
            backend: Name of the backend involved.
            cause: Underlying exception.
        """
        details = {}
        if backend:
            details["backend"] = backend
        super().__init__(message, details)
        self.backend = backend
        self.cause = cause


class BackendIOError(StorageError):
    """Raised when reading or writing the raw storage primitive fails.

    Treated as transient: loads fall back to empty, saves are retried by
    the next scheduled save.
    """

    pass


class PayloadDecodeError(StorageError):
    """Raised when a stored envelope cannot be parsed.

    Examples:
        - Stored text is not JSON
        - Envelope is missing the data field
        - Data field is not valid base64
    """

    pass


# =============================================================================
# Compression Errors
# =============================================================================


class CompressionError(ActivityMonitorError):
    """Raised when compressing or decompressing a payload fails.

    A partially compressed payload cannot be trusted, so this error is never
    recovered inside the codec itself.
    """

    def __init__(
        self,
        message: str,
        version: int | None = None,
        cause: Exception | None = None,
    ):
        """Initialize compression error.

        Args:
            message: Error description.
            version: Payload format version involved.
            cause: Underlying exception.
        """
        details = {}
        if version is not None:
            details["version"] = version
        super().__init__(message, details)
        self.version = version
        self.cause = cause


# =============================================================================
# Capture Errors
# =============================================================================


class CaptureError(ActivityMonitorError):
    """Raised when a raw event cannot be turned into a record.

    Examples:
        - Missing type or message
        - Quantity-bearing type without a numeric quantity
    """

    def __init__(self, message: str, event_type: str | None = None):
        """Initialize capture error.

        Args:
            message: Error description.
            event_type: The notification type of the rejected event.
        """
        details = {}
        if event_type:
            details["event_type"] = event_type
        super().__init__(message, details)
        self.event_type = event_type
