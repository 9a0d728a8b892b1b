"""Data models for the activity log.

Dataclasses representing a single activity record and store statistics.
"""

from dataclasses import dataclass
from typing import Any

from activity_monitor.constants import (
    RECORD_KEY_COUNT,
    RECORD_KEY_CUSTOM_ID,
    RECORD_KEY_ID,
    RECORD_KEY_MEDIA,
    RECORD_KEY_MEDIA_REF,
    RECORD_KEY_MESSAGE,
    RECORD_KEY_QUANTITY,
    RECORD_KEY_TIMESTAMP,
    RECORD_KEY_TYPE,
)
from activity_monitor.exceptions import ValidationError


@dataclass
class ActivityRecord:
    """One activity log entry in its full in-memory form.

    Attributes:
        id: Opaque unique id assigned at capture time.
        timestamp: Milliseconds since epoch; bumped when a duplicate merges in.
        type: Notification category (see NotificationType).
        message: Human-readable text.
        count: Number of merged occurrences (>= 1).
        quantity: Accumulated amount for quantity-bearing events.
        media: Renderable media pointer, derived from media_ref on load.
        media_ref: Compact symbolic reference persisted in place of media.
        custom_id: Free-form producer id passed through unchanged.
    """

    id: str
    timestamp: int
    type: str
    message: str
    count: int = 1
    quantity: float | None = None
    media: str | None = None
    media_ref: str | None = None
    custom_id: str | None = None

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValidationError(
                "Record count must be at least 1",
                field="count",
                value=self.count,
                expected=">= 1",
            )

    @property
    def has_quantity(self) -> bool:
        return self.quantity is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary, omitting unset optional fields."""
        data: dict[str, Any] = {
            RECORD_KEY_ID: self.id,
            RECORD_KEY_TIMESTAMP: self.timestamp,
            RECORD_KEY_TYPE: self.type,
            RECORD_KEY_MESSAGE: self.message,
            RECORD_KEY_COUNT: self.count,
        }
        if self.quantity is not None:
            data[RECORD_KEY_QUANTITY] = self.quantity
        if self.media:
            data[RECORD_KEY_MEDIA] = self.media
        if self.media_ref:
            data[RECORD_KEY_MEDIA_REF] = self.media_ref
        if self.custom_id:
            data[RECORD_KEY_CUSTOM_ID] = self.custom_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityRecord":
        """Create from a dictionary produced by to_dict."""
        return cls(
            id=data[RECORD_KEY_ID],
            timestamp=int(data[RECORD_KEY_TIMESTAMP]),
            type=data[RECORD_KEY_TYPE],
            message=data[RECORD_KEY_MESSAGE],
            count=data.get(RECORD_KEY_COUNT, 1),
            quantity=data.get(RECORD_KEY_QUANTITY),
            media=data.get(RECORD_KEY_MEDIA),
            media_ref=data.get(RECORD_KEY_MEDIA_REF),
            custom_id=data.get(RECORD_KEY_CUSTOM_ID),
        )


@dataclass
class StoreStats:
    """Size and capacity snapshot of an activity store.

    Attributes:
        count: Number of records held in memory.
        compressed_size: Bytes of the compressed persisted form.
        uncompressed_size: Bytes of the serialized persisted form.
        compression_ratio_percent: Space saved by compression (0 when empty).
        estimated_max_count: Rough record capacity of the active backend.
    """

    count: int
    compressed_size: int
    uncompressed_size: int
    compression_ratio_percent: float
    estimated_max_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "count": self.count,
            "compressed_size": self.compressed_size,
            "uncompressed_size": self.uncompressed_size,
            "compression_ratio_percent": round(self.compression_ratio_percent, 1),
            "estimated_max_count": self.estimated_max_count,
        }
