"""Activity log storage: grouping store, backends, compression and eviction."""

from activity_monitor.storage.backends import (
    CapacityPolicy,
    CharacterSlotBackend,
    FileKeyValueStorage,
    InMemoryKeyValueStorage,
    KeyValueStorage,
    LocalStoreBackend,
    StorageBackend,
    VolatileBackend,
    create_backend,
)
from activity_monitor.storage.compression import CompressedPayload, CompressionCodec
from activity_monitor.storage.eviction import EvictionPolicy
from activity_monitor.storage.media import (
    MappingMediaResolver,
    MediaReferenceCodec,
    MediaResolver,
)
from activity_monitor.storage.optimizer import RecordOptimizer
from activity_monitor.storage.store import ActivityStore, SettingsReader

__all__ = [
    "ActivityStore",
    "CapacityPolicy",
    "CharacterSlotBackend",
    "CompressedPayload",
    "CompressionCodec",
    "EvictionPolicy",
    "FileKeyValueStorage",
    "InMemoryKeyValueStorage",
    "KeyValueStorage",
    "LocalStoreBackend",
    "MappingMediaResolver",
    "MediaReferenceCodec",
    "MediaResolver",
    "RecordOptimizer",
    "SettingsReader",
    "StorageBackend",
    "VolatileBackend",
    "create_backend",
]
