"""Data models and enums for activity-monitor."""

from activity_monitor.models.enums import (
    CharacterSaveType,
    MediaKind,
    NotificationType,
    StorageMode,
    StoreEvent,
    TimestampFormat,
)
from activity_monitor.models.record import ActivityRecord, StoreStats

__all__ = [
    "ActivityRecord",
    "CharacterSaveType",
    "MediaKind",
    "NotificationType",
    "StorageMode",
    "StoreEvent",
    "StoreStats",
    "TimestampFormat",
]
