"""Producer side of the activity log.

ActivityCapture turns raw events into ActivityRecord objects and pushes
them to registered callbacks (normally ``ActivityStore.add``). Events are
filtered by the capture toggles and validated before a record is built.
"""

import logging
import math
import random
import string
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from activity_monitor.config.manager import capture_type_key
from activity_monitor.constants import (
    INVALID_MESSAGE_MARKERS,
    QUANTITY_TYPE_MARKERS,
    RECORD_ID_RANDOM_LENGTH,
    SETTING_CAPTURE_ENABLED,
)
from activity_monitor.exceptions import CaptureError
from activity_monitor.models.enums import MediaKind
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage.media import MediaReferenceCodec

logger = logging.getLogger(__name__)

_BASE36_DIGITS = string.digits + string.ascii_lowercase

CaptureCallback = Callable[[ActivityRecord], Any]


@dataclass
class RawEvent:
    """An event as reported by the host, before validation.

    Attributes:
        type: Notification type (see NotificationType).
        message: Display text.
        quantity: Amount for quantity-bearing types.
        media: Renderable media pointer, kept for display.
        custom_id: Producer-defined id passed through unchanged.
        source: Live object (or static path) the media belongs to.
        source_kind: Media kind of ``source``.
    """

    type: str
    message: str
    quantity: float | None = None
    media: str | None = None
    custom_id: str | None = None
    source: Any = None
    source_kind: MediaKind | str | None = None


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def requires_quantity(notification_type: str) -> bool:
    """Whether a notification type must carry a numeric quantity."""
    return any(marker in notification_type for marker in QUANTITY_TYPE_MARKERS)


def validate_event(event: RawEvent) -> None:
    """Check a raw event before it becomes a record.

    Raises:
        CaptureError: If the event is incomplete or carries placeholder text.
    """
    if not event.type or not event.message:
        raise CaptureError("Event must have a type and a message", event_type=event.type)
    if not event.message.strip():
        raise CaptureError("Event message is blank", event_type=event.type)
    for marker in INVALID_MESSAGE_MARKERS:
        if marker in event.message:
            raise CaptureError(f"Event message contains {marker!r}", event_type=event.type)
    if requires_quantity(event.type):
        quantity = event.quantity
        if (
            quantity is None
            or isinstance(quantity, bool)
            or not isinstance(quantity, (int, float))
            or math.isnan(quantity)
        ):
            raise CaptureError(f"{event.type} events need a numeric quantity", event_type=event.type)


class ActivityCapture:
    """Validates raw events and pushes them to capture callbacks."""

    def __init__(
        self,
        settings: Any = None,
        media_codec: MediaReferenceCodec | None = None,
        clock: Callable[[], int] | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize the capture layer.

        Args:
            settings: Settings reader with ``get(key, default)``; everything
                is captured when omitted.
            media_codec: Codec used to derive symbolic media references.
            clock: Returns the current time in milliseconds since epoch.
            rng: Random source for record ids.
        """
        self.settings = settings
        self.media_codec = media_codec or MediaReferenceCodec()
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._rng = rng or random.Random()
        self._callbacks: list[CaptureCallback] = []
        self.total_captured = 0

    def on_capture(self, callback: CaptureCallback) -> Callable[[], None]:
        """Register a callback for captured records. Returns an unsubscribe callable."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def should_capture(self, notification_type: str) -> bool:
        if self.settings is None:
            return True
        if not self.settings.get(SETTING_CAPTURE_ENABLED, True):
            return False
        return bool(self.settings.get(capture_type_key(notification_type), True))

    def generate_id(self) -> str:
        """Short unique id: base-36 millisecond timestamp plus random suffix."""
        suffix = "".join(self._rng.choices(_BASE36_DIGITS, k=RECORD_ID_RANDOM_LENGTH))
        return f"{to_base36(self._clock())}-{suffix}"

    def capture(self, event: RawEvent) -> ActivityRecord | None:
        """Turn a raw event into a record and push it to every callback.

        Args:
            event: Event reported by the host.

        Returns:
            The captured record, or None when the event was filtered out or
            failed validation.
        """
        if not self.should_capture(event.type):
            logger.debug(f"Capture disabled for {event.type}")
            return None

        try:
            validate_event(event)
        except CaptureError as e:
            logger.debug(f"Skipping invalid event: {e}")
            return None

        media_ref = None
        if event.source is not None and event.source_kind:
            media_ref = self.media_codec.encode(event.source_kind, event.source)

        record = ActivityRecord(
            id=self.generate_id(),
            timestamp=self._clock(),
            type=event.type,
            message=event.message,
            quantity=event.quantity,
            media=event.media,
            media_ref=media_ref,
            custom_id=event.custom_id,
        )
        self.total_captured += 1

        for callback in list(self._callbacks):
            callback(record)

        logger.debug(f"Captured {record.type} event: {record.message}")
        return record

    def get_stats(self) -> dict[str, int]:
        return {"total_captured": self.total_captured}
