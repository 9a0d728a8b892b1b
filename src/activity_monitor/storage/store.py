"""Activity log store.

Owns the newest-first record sequence and composes the rest of the storage
package around it:

    add() -> grouping scan -> merge or prepend -> eviction -> notify -> debounced save
    load() <- backend bytes <- decompress <- reconstruct

Mutations update memory and notify listeners synchronously. Persistence is
a full-snapshot overwrite scheduled on a cancellable timer; each mutation
resets the timer, so only the last scheduled save writes.

Callers serialize mutations. The debounced save runs on the timer thread and
serializes a copy of the records taken under the records lock.
"""

import copy
import dataclasses
import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from activity_monitor.config.preferences import StoragePreferences
from activity_monitor.constants import (
    DEFAULT_CHARACTER_SAVE_LINE_COUNT,
    DEFAULT_CHARACTER_SAVE_PERCENTAGE,
    DEFAULT_CHARACTER_SAVE_TYPE,
    DEFAULT_COMPRESSED_BYTES_PER_RECORD,
    DEFAULT_GROUPING_ENABLED,
    DEFAULT_LOCAL_STORAGE_LINE_COUNT,
    DEFAULT_PROFILE_ID,
    DEFAULT_STORAGE_MODE,
    FALLBACK_GROUPING_WINDOW_SECONDS,
    GROUPING_WINDOW_ALWAYS,
    GROUPING_WINDOW_NEVER,
    SAVE_DEBOUNCE_SECONDS,
    SETTING_CHARACTER_SAVE_LINE_COUNT,
    SETTING_CHARACTER_SAVE_PERCENTAGE,
    SETTING_CHARACTER_SAVE_TYPE,
    SETTING_GROUP_SIMILAR,
    SETTING_GROUP_SIMILAR_TIME_WINDOW,
    SETTING_LOCAL_STORAGE_LINE_COUNT,
    SETTING_STORAGE_MODE,
    STORAGE_LIMIT_SETTINGS,
)
from activity_monitor.exceptions import (
    ActivityMonitorError,
    CompressionError,
    StorageError,
    ValidationError,
)
from activity_monitor.models.enums import StorageMode, StoreEvent
from activity_monitor.models.record import ActivityRecord, StoreStats
from activity_monitor.storage.backends.base import KeyValueStorage, StorageBackend
from activity_monitor.storage.backends.factory import create_backend
from activity_monitor.storage.backends.memory import InMemoryKeyValueStorage
from activity_monitor.storage.compression import CompressionCodec
from activity_monitor.storage.eviction import EvictionPolicy
from activity_monitor.storage.media import MediaReferenceCodec, MediaResolver
from activity_monitor.storage.optimizer import RecordOptimizer

logger = logging.getLogger(__name__)

RecordListener = Callable[[ActivityRecord], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]


class SettingsReader(Protocol):
    """Read side of the settings system, plus change subscription."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class ActivityStore:
    """Bounded, grouped, persisted activity log."""

    def __init__(
        self,
        settings: SettingsReader | None = None,
        *,
        slot_storage: KeyValueStorage | None = None,
        local_storage: KeyValueStorage | None = None,
        profile_id: str = DEFAULT_PROFILE_ID,
        resolver: MediaResolver | None = None,
        codec: CompressionCodec | None = None,
        clock: Callable[[], int] = _now_ms,
        timer_factory: TimerFactory = threading.Timer,
        debounce_seconds: float = SAVE_DEBOUNCE_SECONDS,
    ):
        """Initialize the store.

        Args:
            settings: Settings reader; grouping and storage options are read
                from it on demand. Defaults apply when omitted.
            slot_storage: Raw storage for the character save slot.
            local_storage: Raw storage for per-profile logs.
            profile_id: Active profile, part of the local store key.
            resolver: Live object registry for symbolic media references.
            codec: Compression codec (default DEFLATE codec).
            clock: Returns the current time in milliseconds since epoch.
            timer_factory: Creates the debounce timer; called like
                ``threading.Timer(interval, function)``.
            debounce_seconds: Save coalescing window.
        """
        self.settings = settings
        # Created once so that recreating the backend keeps earlier writes
        if slot_storage is None:
            slot_storage = InMemoryKeyValueStorage()
        if local_storage is None:
            local_storage = InMemoryKeyValueStorage()
        self.slot_storage = slot_storage
        self.local_storage = local_storage
        self.profile_id = profile_id
        self.media_codec = MediaReferenceCodec(resolver)
        self.optimizer = RecordOptimizer(self.media_codec)
        self.codec = codec or CompressionCodec()
        self.eviction = EvictionPolicy(self.codec, self.optimizer)
        self._clock = clock
        self._timer_factory = timer_factory
        self.debounce_seconds = debounce_seconds

        self._records: list[ActivityRecord] = []
        self._listeners: dict[StoreEvent, list[RecordListener]] = {
            StoreEvent.RECORD_ADDED: [],
            StoreEvent.RECORD_UPDATED: [],
        }

        self._records_lock = threading.RLock()
        self._lock = threading.Lock()
        self._save_timer: Any = None
        self._save_pending = False

        self.backend: StorageBackend = self._create_backend()
        self._unsubscribe_settings: Callable[[], None] | None = None
        if settings is not None and hasattr(settings, "subscribe"):
            self._unsubscribe_settings = settings.subscribe(self._on_setting_changed)
            logger.info("Storage settings listeners registered")

    # =========================================================================
    # Settings
    # =========================================================================

    def _setting(self, key: str, default: Any) -> Any:
        if self.settings is None:
            return default
        try:
            value = self.settings.get(key, default)
        except Exception as e:
            logger.warning(f"Failed to read setting {key}: {e}")
            return default
        return default if value is None else value

    def _storage_preferences(self) -> StoragePreferences:
        """Current storage mode and limits as read from settings."""
        try:
            return StoragePreferences(
                mode=self._setting(SETTING_STORAGE_MODE, DEFAULT_STORAGE_MODE),
                character_save_type=self._setting(
                    SETTING_CHARACTER_SAVE_TYPE, DEFAULT_CHARACTER_SAVE_TYPE
                ),
                character_save_percentage=self._setting(
                    SETTING_CHARACTER_SAVE_PERCENTAGE, DEFAULT_CHARACTER_SAVE_PERCENTAGE
                ),
                character_save_line_count=self._setting(
                    SETTING_CHARACTER_SAVE_LINE_COUNT, DEFAULT_CHARACTER_SAVE_LINE_COUNT
                ),
                local_storage_line_count=self._setting(
                    SETTING_LOCAL_STORAGE_LINE_COUNT, DEFAULT_LOCAL_STORAGE_LINE_COUNT
                ),
            )
        except ValidationError as e:
            logger.warning(f"Invalid storage settings, using defaults: {e}")
            return StoragePreferences()

    def _create_backend(self) -> StorageBackend:
        prefs = self._storage_preferences()
        return create_backend(
            prefs.mode,
            prefs,
            slot_storage=self.slot_storage,
            local_storage=self.local_storage,
            profile_id=self.profile_id,
        )

    def _grouping_window_ms(self) -> tuple[bool, int | None]:
        """Read grouping config at call time.

        Returns:
            ``(enabled, window_ms)``; ``window_ms`` is None for no time bound.
        """
        enabled = self._setting(SETTING_GROUP_SIMILAR, DEFAULT_GROUPING_ENABLED)
        window = self._setting(SETTING_GROUP_SIMILAR_TIME_WINDOW, FALLBACK_GROUPING_WINDOW_SECONDS)
        if not enabled or window == GROUPING_WINDOW_NEVER:
            return False, None
        if window == GROUPING_WINDOW_ALWAYS:
            return True, None
        try:
            return True, int(float(window) * 1000)
        except (TypeError, ValueError):
            logger.warning(
                f"Invalid grouping time window {window!r}, "
                f"using {FALLBACK_GROUPING_WINDOW_SECONDS}s"
            )
            return True, FALLBACK_GROUPING_WINDOW_SECONDS * 1000

    def _on_setting_changed(self, change: Any) -> None:
        key = getattr(change, "key", None)
        if key == SETTING_STORAGE_MODE:
            old_mode = self.backend.name
            self.backend = self._create_backend()
            logger.info(f"Storage mode changed: {old_mode} -> {self.backend.name}")
            with self._records_lock:
                self.eviction.enforce(self._records, self.backend.capacity)
            self.save()
        elif key in STORAGE_LIMIT_SETTINGS:
            self.backend = self._create_backend()
            logger.debug(f"Storage setting updated: {key} = {getattr(change, 'new_value', None)}")
            with self._records_lock:
                removed = self.eviction.enforce(self._records, self.backend.capacity)
            if removed:
                self._schedule_save()

    @property
    def mode(self) -> StorageMode:
        return self.backend.mode

    # =========================================================================
    # Listeners
    # =========================================================================

    def on_record_added(self, listener: RecordListener) -> Callable[[], None]:
        """Register a listener for new records. Returns an unsubscribe callable."""
        return self._subscribe(StoreEvent.RECORD_ADDED, listener)

    def on_record_updated(self, listener: RecordListener) -> Callable[[], None]:
        """Register a listener for merged or edited records."""
        return self._subscribe(StoreEvent.RECORD_UPDATED, listener)

    def _subscribe(self, event: StoreEvent, listener: RecordListener) -> Callable[[], None]:
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def _emit(self, event: StoreEvent, record: ActivityRecord) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener(copy.copy(record))
            except Exception:
                logger.error(f"Listener for {event.value} failed", exc_info=True)

    # =========================================================================
    # Ingest
    # =========================================================================

    def add(self, event: ActivityRecord) -> ActivityRecord:
        """Ingest one captured event, merging it into a recent duplicate if any.

        A candidate matches when its type equals the event's type and either
        the event carries a quantity or the messages are identical. The scan
        runs newest to oldest and stops at the first record outside the
        grouping window.

        Args:
            event: Captured record.

        Returns:
            Copy of the stored record (the merged one on a match).

        Raises:
            CompressionError: If size-based eviction cannot measure the log.
        """
        enabled, window_ms = self._grouping_window_ms()
        merged: ActivityRecord | None = None
        with self._records_lock:
            if enabled:
                now = self._clock()
                index = self._find_group_match(event, now, window_ms)
                if index is not None:
                    existing = self._records.pop(index)
                    existing.count += 1
                    if event.quantity is not None:
                        existing.quantity = (existing.quantity or 0) + event.quantity
                    existing.timestamp = now
                    self._records.insert(0, existing)
                    merged = copy.copy(existing)

            if merged is None:
                record = dataclasses.replace(event, count=1)
                # Producer timestamps may lag the newest record; never break ordering
                if self._records and record.timestamp < self._records[0].timestamp:
                    record.timestamp = self._records[0].timestamp
                self._records.insert(0, record)
                self.eviction.enforce(self._records, self.backend.capacity)
                added = copy.copy(record)

        if merged is not None:
            logger.debug(f"Grouped {event.type} into {merged.id} (count={merged.count})")
            self._emit(StoreEvent.RECORD_UPDATED, merged)
            self._schedule_save()
            return copy.copy(merged)

        self._emit(StoreEvent.RECORD_ADDED, added)
        self._schedule_save()
        return copy.copy(added)

    def _find_group_match(
        self, event: ActivityRecord, now: int, window_ms: int | None
    ) -> int | None:
        has_quantity = event.quantity is not None
        for index, candidate in enumerate(self._records):
            # Newest-first: everything after this is older still
            if window_ms is not None and now - candidate.timestamp >= window_ms:
                return None
            if candidate.type == event.type and (
                has_quantity or candidate.message == event.message
            ):
                return index
        return None

    # =========================================================================
    # Queries and direct mutations
    # =========================================================================

    def get_all(self) -> list[ActivityRecord]:
        """Return copies of all records, newest first."""
        with self._records_lock:
            return [copy.copy(record) for record in self._records]

    def get(self, record_id: str) -> ActivityRecord | None:
        with self._records_lock:
            for record in self._records:
                if record.id == record_id:
                    return copy.copy(record)
        return None

    def __len__(self) -> int:
        return len(self._records)

    def update(self, record_id: str, changes: dict[str, Any]) -> ActivityRecord | None:
        """Apply field changes to a record.

        Args:
            record_id: Record to change.
            changes: Field name to new value.

        Returns:
            Copy of the updated record, or None if no record has that id.

        Raises:
            ValidationError: On an unknown field or an invalid count.
        """
        updated: ActivityRecord | None = None
        with self._records_lock:
            for index, record in enumerate(self._records):
                if record.id != record_id:
                    continue
                try:
                    updated = dataclasses.replace(record, **changes)
                except TypeError as e:
                    raise ValidationError(
                        f"Cannot update record {record_id}: {e}",
                        field="changes",
                        value=sorted(changes),
                    ) from e
                self._records[index] = updated
                break
        if updated is None:
            return None
        self._emit(StoreEvent.RECORD_UPDATED, updated)
        self._schedule_save()
        return copy.copy(updated)

    def remove(self, record_id: str) -> bool:
        """Remove a record by id. Returns True if one was removed."""
        with self._records_lock:
            before = len(self._records)
            self._records = [record for record in self._records if record.id != record_id]
            removed = len(self._records) != before
        if removed:
            self._schedule_save()
        return removed

    def clear_all(self) -> None:
        """Drop every record and persist the empty log immediately."""
        with self._records_lock:
            self._records = []
        self._cancel_pending_save()
        self.save()
        logger.info("Cleared all activity records")

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> list[ActivityRecord]:
        """Replace the in-memory log with the active backend's contents.

        Failures are logged and leave the log empty.

        Returns:
            Copies of the loaded records.
        """
        records: list[ActivityRecord] = []
        try:
            payload = self.backend.get_bytes()
            if payload is not None:
                stored = self.codec.decompress(payload)
                if not isinstance(stored, list):
                    raise ValueError(f"Expected a record list, got {type(stored).__name__}")
                records = self.optimizer.reconstruct_all(stored)
        except (ActivityMonitorError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load activity log from {self.backend.name}: {e}")
            records = []
        with self._records_lock:
            self._records = records

        if not self.backend.persists:
            logger.info("Memory-only mode - starting with empty activity log")
        logger.info(f"Loaded {len(records)} records from {self.backend.name}")
        return self.get_all()

    def save(self) -> bool:
        """Write the full log to the active backend now.

        Failures are logged and the write is dropped; the next save retries.

        Returns:
            True if the backend accepted the write.
        """
        if not self.backend.persists:
            return True
        snapshot = self.get_all()
        try:
            payload = self.codec.compress(self.optimizer.optimize_all(snapshot))
            self.backend.set_bytes(payload)
        except (StorageError, CompressionError) as e:
            logger.error(f"Failed to save activity log to {self.backend.name}: {e}")
            return False
        logger.debug(f"Saved {len(snapshot)} records to {self.backend.name}")
        return True

    def _schedule_save(self) -> None:
        """Schedule a debounced save, replacing any pending one."""
        with self._lock:
            if self._save_timer is not None:
                self._save_timer.cancel()
            self._save_pending = True
            self._save_timer = self._timer_factory(self.debounce_seconds, self._do_scheduled_save)
            self._save_timer.daemon = True
            self._save_timer.start()

    def _do_scheduled_save(self) -> None:
        with self._lock:
            if not self._save_pending:
                return
            self._save_pending = False
            self._save_timer = None
        self.save()

    def _cancel_pending_save(self) -> bool:
        with self._lock:
            pending = self._save_pending
            if self._save_timer is not None:
                self._save_timer.cancel()
            self._save_timer = None
            self._save_pending = False
        return pending

    @property
    def has_pending_save(self) -> bool:
        with self._lock:
            return self._save_pending

    def flush(self) -> bool:
        """Run a pending debounced save now.

        Returns:
            True if a save was pending and has been written.
        """
        if not self._cancel_pending_save():
            return False
        return self.save()

    def close(self) -> None:
        """Flush pending writes and detach from settings."""
        self.flush()
        if self._unsubscribe_settings is not None:
            self._unsubscribe_settings()
            self._unsubscribe_settings = None

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> StoreStats:
        """Measure the persisted form of the log.

        Raises:
            CompressionError: If the log cannot be compressed.
        """
        snapshot = self.get_all()
        count = len(snapshot)
        payload = self.eviction.measure(snapshot)
        compressed = payload.compressed_size
        uncompressed = payload.uncompressed_size

        ratio = 0.0
        if count and uncompressed:
            ratio = (1 - compressed / uncompressed) * 100

        per_record = compressed / count if count else DEFAULT_COMPRESSED_BYTES_PER_RECORD
        return StoreStats(
            count=count,
            compressed_size=compressed,
            uncompressed_size=uncompressed,
            compression_ratio_percent=ratio,
            estimated_max_count=self.backend.capacity.estimate_max_count(per_record),
        )
