"""Factory for creating storage backends from configuration."""

import logging

from activity_monitor.config.preferences import StoragePreferences
from activity_monitor.constants import (
    DEFAULT_PROFILE_ID,
    ERROR_UNKNOWN_STORAGE_MODE,
    ERROR_UNKNOWN_STORAGE_MODE_EXPECTED,
)
from activity_monitor.exceptions import ValidationError
from activity_monitor.models.enums import StorageMode
from activity_monitor.storage.backends.base import KeyValueStorage, StorageBackend
from activity_monitor.storage.backends.keyed import LocalStoreBackend
from activity_monitor.storage.backends.memory import InMemoryKeyValueStorage, VolatileBackend
from activity_monitor.storage.backends.slot import CharacterSlotBackend

logger = logging.getLogger(__name__)


def create_backend(
    mode: StorageMode | str,
    storage_prefs: StoragePreferences | None = None,
    slot_storage: KeyValueStorage | None = None,
    local_storage: KeyValueStorage | None = None,
    profile_id: str = DEFAULT_PROFILE_ID,
) -> StorageBackend:
    """Create a storage backend for a storage mode.

    Args:
        mode: Storage mode ("local-storage", "character-save" or "memory-only").
        storage_prefs: Limits for the selected backend (defaults if omitted).
        slot_storage: Raw storage holding the character save slot.
        local_storage: Raw storage holding per-profile logs.
        profile_id: Active profile, part of the local store key.

    Returns:
        Configured StorageBackend instance.

    Raises:
        ValidationError: If the mode is invalid.
    """
    prefs = storage_prefs or StoragePreferences()
    mode_value = mode.value if isinstance(mode, StorageMode) else mode

    if mode_value == StorageMode.CHARACTER_SAVE.value:
        return CharacterSlotBackend(
            slot_storage if slot_storage is not None else InMemoryKeyValueStorage(),
            save_type=prefs.character_save_type,
            percentage=prefs.character_save_percentage,
            line_count=prefs.character_save_line_count,
        )
    elif mode_value == StorageMode.LOCAL_STORAGE.value:
        return LocalStoreBackend(
            local_storage if local_storage is not None else InMemoryKeyValueStorage(),
            profile_id=profile_id,
            line_count=prefs.local_storage_line_count,
        )
    elif mode_value == StorageMode.MEMORY_ONLY.value:
        return VolatileBackend()
    else:
        raise ValidationError(
            ERROR_UNKNOWN_STORAGE_MODE.format(mode=mode_value),
            field="mode",
            value=mode_value,
            expected=ERROR_UNKNOWN_STORAGE_MODE_EXPECTED.format(
                modes=", ".join(StorageMode.values())
            ),
        )
