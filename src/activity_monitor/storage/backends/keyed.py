"""Local store backend: count-bounded, one key per profile."""

from activity_monitor.constants import (
    DEFAULT_LOCAL_STORAGE_LINE_COUNT,
    DEFAULT_PROFILE_ID,
    LOCAL_STORE_KEY_PREFIX,
)
from activity_monitor.models.enums import StorageMode
from activity_monitor.storage.backends.base import (
    CapacityPolicy,
    KeyValueBackend,
    KeyValueStorage,
)


def local_store_key(profile_id: str) -> str:
    """Build the storage key for a profile's activity log."""
    return f"{LOCAL_STORE_KEY_PREFIX}{profile_id}"


class LocalStoreBackend(KeyValueBackend):
    """Count-bounded backend keyed by the active profile."""

    mode = StorageMode.LOCAL_STORAGE

    def __init__(
        self,
        storage: KeyValueStorage,
        profile_id: str = DEFAULT_PROFILE_ID,
        line_count: int = DEFAULT_LOCAL_STORAGE_LINE_COUNT,
    ):
        super().__init__(storage, local_store_key(profile_id))
        self.profile_id = profile_id
        self.line_count = line_count

    @property
    def capacity(self) -> CapacityPolicy:
        return CapacityPolicy(max_items=self.line_count)
