"""In-process storage: a dict-backed key/value primitive and the volatile backend."""

import logging

from activity_monitor.models.enums import StorageMode
from activity_monitor.storage.backends.base import (
    CapacityPolicy,
    KeyValueStorage,
    StorageBackend,
)
from activity_monitor.storage.compression import CompressedPayload

logger = logging.getLogger(__name__)


class InMemoryKeyValueStorage(KeyValueStorage):
    """KeyValueStorage held in a plain dict. Lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class VolatileBackend(StorageBackend):
    """Memory-only mode: loads nothing and discards every write."""

    mode = StorageMode.MEMORY_ONLY

    @property
    def persists(self) -> bool:
        return False

    @property
    def capacity(self) -> CapacityPolicy:
        return CapacityPolicy()

    def get_bytes(self) -> CompressedPayload | None:
        return None

    def set_bytes(self, payload: CompressedPayload) -> None:
        logger.debug("Memory-only mode - skipping save")
