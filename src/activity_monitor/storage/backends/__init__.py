"""Persistence backends for the activity log.

Three variants share one interface: a size-bounded character save slot, a
count-bounded per-profile local store, and a volatile memory-only mode.
"""

from activity_monitor.storage.backends.base import (
    CapacityPolicy,
    KeyValueStorage,
    StorageBackend,
)
from activity_monitor.storage.backends.factory import create_backend
from activity_monitor.storage.backends.file_storage import FileKeyValueStorage
from activity_monitor.storage.backends.keyed import LocalStoreBackend, local_store_key
from activity_monitor.storage.backends.memory import InMemoryKeyValueStorage, VolatileBackend
from activity_monitor.storage.backends.slot import CharacterSlotBackend

__all__ = [
    "CapacityPolicy",
    "CharacterSlotBackend",
    "FileKeyValueStorage",
    "InMemoryKeyValueStorage",
    "KeyValueStorage",
    "LocalStoreBackend",
    "StorageBackend",
    "VolatileBackend",
    "create_backend",
    "local_store_key",
]
