"""Mapping between full in-memory records and their minimal persisted form.

Persisted records keep ``id``, ``timestamp``, ``type`` and ``message``, plus:
- ``count`` only when greater than 1
- ``quantity`` only when present
- ``mediaRef`` (symbolic, or a "dl:" fallback built from ``media``)
- ``customID`` only when set

``media`` itself is never persisted; reconstruct() rebuilds it from
``mediaRef``.
"""

import logging
from typing import Any

from activity_monitor.constants import (
    RECORD_KEY_COUNT,
    RECORD_KEY_CUSTOM_ID,
    RECORD_KEY_ID,
    RECORD_KEY_MEDIA_REF,
    RECORD_KEY_MESSAGE,
    RECORD_KEY_QUANTITY,
    RECORD_KEY_TIMESTAMP,
    RECORD_KEY_TYPE,
)
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage.media import MediaReferenceCodec

logger = logging.getLogger(__name__)


class RecordOptimizer:
    """Strips derivable data from records before persistence and restores it."""

    def __init__(self, media_codec: MediaReferenceCodec | None = None):
        self.media_codec = media_codec or MediaReferenceCodec()

    def optimize(self, record: ActivityRecord) -> dict[str, Any]:
        """Convert a record to its minimal persisted form.

        Args:
            record: Full in-memory record.

        Returns:
            JSON-ready dictionary.
        """
        optimized: dict[str, Any] = {
            RECORD_KEY_ID: record.id,
            RECORD_KEY_TIMESTAMP: record.timestamp,
            RECORD_KEY_TYPE: record.type,
            RECORD_KEY_MESSAGE: record.message,
        }
        if record.count > 1:
            optimized[RECORD_KEY_COUNT] = record.count
        if record.quantity is not None:
            optimized[RECORD_KEY_QUANTITY] = record.quantity

        media_ref = self._persistable_media_ref(record)
        if media_ref:
            optimized[RECORD_KEY_MEDIA_REF] = media_ref

        if record.custom_id:
            optimized[RECORD_KEY_CUSTOM_ID] = record.custom_id
        return optimized

    def optimize_all(self, records: list[ActivityRecord]) -> list[dict[str, Any]]:
        return [self.optimize(record) for record in records]

    def _persistable_media_ref(self, record: ActivityRecord) -> str | None:
        """Pick the reference to persist, preferring a symbolic one."""
        if record.media_ref and not self.media_codec.is_fallback(record.media_ref):
            return record.media_ref
        if record.media:
            derived = self.media_codec.derive(record.media)
            if derived:
                logger.debug(f"Derived symbolic media reference {derived} for {record.id}")
                return derived
            return self.media_codec.encode_fallback(record.media)
        # A fallback ref without media to rebuild it from is kept as-is
        return record.media_ref

    def reconstruct(self, stored: dict[str, Any]) -> ActivityRecord:
        """Rebuild a full record from its persisted form.

        A fallback ("dl:") reference still yields ``media`` but is not
        re-exposed as ``media_ref``, so the next save derives it afresh.

        Args:
            stored: Persisted record dictionary.

        Returns:
            ActivityRecord with defaults restored.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the item is not a mapping.
        """
        if not isinstance(stored, dict):
            raise ValueError(f"Expected a record mapping, got {type(stored).__name__}")
        media_ref = stored.get(RECORD_KEY_MEDIA_REF)
        media: str | None = None
        kept_ref: str | None = None
        if media_ref:
            media = self.media_codec.decode(media_ref) or None
            if not self.media_codec.is_fallback(media_ref):
                kept_ref = media_ref

        return ActivityRecord(
            id=stored[RECORD_KEY_ID],
            timestamp=int(stored[RECORD_KEY_TIMESTAMP]),
            type=stored[RECORD_KEY_TYPE],
            message=stored[RECORD_KEY_MESSAGE],
            count=stored.get(RECORD_KEY_COUNT) or 1,
            quantity=stored.get(RECORD_KEY_QUANTITY),
            media=media,
            media_ref=kept_ref,
            custom_id=stored.get(RECORD_KEY_CUSTOM_ID),
        )

    def reconstruct_all(self, stored: list[dict[str, Any]]) -> list[ActivityRecord]:
        return [self.reconstruct(item) for item in stored]
