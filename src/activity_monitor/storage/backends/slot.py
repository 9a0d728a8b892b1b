"""Character save slot backend.

A single named slot inside the character save, with a hard byte ceiling.
The ceiling is a percentage of the slot budget or a fixed record count,
depending on the configured save type. Eviction keeps the log under that
ceiling; the backend itself accepts any write.
"""

import logging
import math

from activity_monitor.constants import (
    CHARACTER_SLOT_KEY,
    DEFAULT_CHARACTER_SAVE_LINE_COUNT,
    DEFAULT_CHARACTER_SAVE_PERCENTAGE,
    MAX_CHARACTER_SAVE_BYTES,
)
from activity_monitor.models.enums import CharacterSaveType, StorageMode
from activity_monitor.storage.backends.base import (
    CapacityPolicy,
    KeyValueBackend,
    KeyValueStorage,
)

logger = logging.getLogger(__name__)


class CharacterSlotBackend(KeyValueBackend):
    """Size-bounded backend writing to the character save slot."""

    mode = StorageMode.CHARACTER_SAVE

    def __init__(
        self,
        storage: KeyValueStorage,
        save_type: CharacterSaveType | str = CharacterSaveType.PERCENTAGE,
        percentage: int = DEFAULT_CHARACTER_SAVE_PERCENTAGE,
        line_count: int = DEFAULT_CHARACTER_SAVE_LINE_COUNT,
        ceiling_bytes: int = MAX_CHARACTER_SAVE_BYTES,
    ):
        """Initialize the slot backend.

        Args:
            storage: Raw storage holding the slot.
            save_type: Percentage-of-budget or fixed line count.
            percentage: Share of ``ceiling_bytes`` the log may use.
            line_count: Record ceiling for line-count mode.
            ceiling_bytes: Hard byte ceiling of the slot.
        """
        super().__init__(storage, CHARACTER_SLOT_KEY)
        self.save_type = CharacterSaveType(save_type)
        self.percentage = percentage
        self.line_count = line_count
        self.ceiling_bytes = ceiling_bytes

    @property
    def max_bytes(self) -> int:
        return math.floor(self.ceiling_bytes * self.percentage / 100)

    @property
    def capacity(self) -> CapacityPolicy:
        if self.save_type == CharacterSaveType.LINE_COUNT:
            return CapacityPolicy(max_items=self.line_count)
        return CapacityPolicy(max_bytes=self.max_bytes)

    def _check_written_size(self, envelope: str) -> None:
        size = len(envelope.encode("utf-8"))
        if size > self.ceiling_bytes:
            logger.warning(
                f"Character save payload is {size} bytes, over the {self.ceiling_bytes} byte slot ceiling"
            )
