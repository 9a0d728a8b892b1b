"""Tests for the exception hierarchy."""

import pytest

from activity_monitor.exceptions import (
    ActivityMonitorError,
    BackendIOError,
    CaptureError,
    CompressionError,
    ConfigurationError,
    PayloadDecodeError,
    StorageError,
    ValidationError,
)


class TestHierarchy:
    """Every package error derives from ActivityMonitorError."""

    @pytest.mark.parametrize(
        ("error", "parent"),
        [
            (ValidationError("bad", field="mode"), ConfigurationError),
            (BackendIOError("io"), StorageError),
            (PayloadDecodeError("json"), StorageError),
            (CompressionError("zlib"), ActivityMonitorError),
            (CaptureError("event"), ActivityMonitorError),
        ],
    )
    def test_parents(self, error: Exception, parent: type[Exception]):
        assert isinstance(error, parent)
        assert isinstance(error, ActivityMonitorError)


class TestMessages:
    """String rendering with details."""

    def test_plain_message(self):
        assert str(ActivityMonitorError("Something failed")) == "Something failed"

    def test_details_are_appended(self):
        error = ValidationError("Bad percentage", field="percentage", value=5, expected=">= 10")
        assert str(error) == "Bad percentage (field=percentage, value=5, expected=>= 10)"
        assert error.field == "percentage"
        assert error.value == 5

    def test_long_values_are_truncated(self):
        error = ValidationError("Too long", field="message", value="x" * 500)
        assert error.details["value"] == "x" * 100 + "..."
        assert error.value == "x" * 500

    def test_storage_error_keeps_cause(self):
        cause = OSError("disk full")
        error = BackendIOError("Write failed", backend="local-storage", cause=cause)
        assert error.details == {"backend": "local-storage"}
        assert error.cause is cause

    def test_compression_error_version(self):
        assert CompressionError("Unsupported", version=9).details == {"version": 9}
        assert CompressionError("Unsupported").details == {}

    def test_configuration_error_context(self, tmp_path):
        error = ConfigurationError("Unreadable", config_file=tmp_path / "config.yaml", key="storage")
        assert error.details["key"] == "storage"
        assert error.details["config_file"].endswith("config.yaml")
