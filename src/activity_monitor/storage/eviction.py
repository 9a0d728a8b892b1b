"""Capacity enforcement for the activity log.

Records are ordered newest-first, so eviction always removes from the tail.

Count-bounded backends truncate in one step. Size-bounded backends compress
the persisted form to measure it; since compression is the expensive part,
the loop only re-measures every few removals (and once more when the log
runs empty). It may therefore remove up to ``remeasure_interval - 1``
records more than strictly necessary.
"""

import logging

from activity_monitor.constants import EVICTION_REMEASURE_INTERVAL
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage.backends.base import CapacityPolicy
from activity_monitor.storage.compression import CompressedPayload, CompressionCodec
from activity_monitor.storage.optimizer import RecordOptimizer

logger = logging.getLogger(__name__)


class EvictionPolicy:
    """Drops the oldest records until a capacity policy is satisfied."""

    def __init__(
        self,
        codec: CompressionCodec,
        optimizer: RecordOptimizer,
        remeasure_interval: int = EVICTION_REMEASURE_INTERVAL,
    ):
        if remeasure_interval < 1:
            raise ValueError("remeasure_interval must be at least 1")
        self.codec = codec
        self.optimizer = optimizer
        self.remeasure_interval = remeasure_interval

    def measure(self, records: list[ActivityRecord]) -> CompressedPayload:
        """Compress the persisted form of ``records``.

        Raises:
            CompressionError: If compression fails.
        """
        return self.codec.compress(self.optimizer.optimize_all(records))

    def enforce(self, records: list[ActivityRecord], capacity: CapacityPolicy) -> int:
        """Evict oldest records in place until ``capacity`` holds.

        Args:
            records: Newest-first record list, mutated in place.
            capacity: Ceiling advertised by the active backend.

        Returns:
            Number of records removed.

        Raises:
            CompressionError: If measuring the compressed size fails.
        """
        if capacity.max_items is not None:
            return self._enforce_count(records, capacity.max_items)
        if capacity.max_bytes is not None:
            return self._enforce_size(records, capacity.max_bytes)
        return 0

    def _enforce_count(self, records: list[ActivityRecord], max_items: int) -> int:
        excess = len(records) - max_items
        if excess <= 0:
            return 0
        del records[max_items:]
        logger.debug(f"Pruned {excess} records to stay within {max_items} line limit")
        return excess

    def _enforce_size(self, records: list[ActivityRecord], max_bytes: int) -> int:
        size = self.measure(records).compressed_size
        if size <= max_bytes:
            return 0

        removed = 0
        while records:
            records.pop()
            removed += 1
            if removed % self.remeasure_interval == 0 or not records:
                size = self.measure(records).compressed_size
                if size <= max_bytes:
                    break

        logger.debug(
            f"Pruned {removed} records to stay within {max_bytes} bytes "
            f"(now {size} bytes, {len(records)} records)"
        )
        return removed
