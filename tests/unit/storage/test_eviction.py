"""Tests for count- and size-based eviction."""

import random
from unittest.mock import patch

import pytest

from activity_monitor.exceptions import CompressionError
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage.backends import CapacityPolicy
from activity_monitor.storage.compression import CompressionCodec
from activity_monitor.storage.eviction import EvictionPolicy
from activity_monitor.storage.optimizer import RecordOptimizer


def _records(count: int, seed: int = 7) -> list[ActivityRecord]:
    """Newest-first records with hard-to-compress messages."""
    rng = random.Random(seed)
    return [
        ActivityRecord(
            id=f"rec-{i}",
            timestamp=1_700_000_000_000 - i * 1000,
            type="Info",
            message=f"event {rng.getrandbits(64):016x}",
        )
        for i in range(count)
    ]


@pytest.fixture
def policy() -> EvictionPolicy:
    return EvictionPolicy(CompressionCodec(), RecordOptimizer())


class TestCountEviction:
    """Item-count ceilings."""

    def test_truncates_to_newest(self, policy: EvictionPolicy):
        records = _records(10)
        newest = [r.id for r in records[:4]]
        assert policy.enforce(records, CapacityPolicy(max_items=4)) == 6
        assert [r.id for r in records] == newest

    def test_within_limit(self, policy: EvictionPolicy):
        records = _records(3)
        assert policy.enforce(records, CapacityPolicy(max_items=3)) == 0
        assert len(records) == 3

    def test_unbounded(self, policy: EvictionPolicy):
        records = _records(100)
        assert policy.enforce(records, CapacityPolicy()) == 0
        assert len(records) == 100


class TestSizeEviction:
    """Byte-budget ceilings."""

    def test_within_budget_measures_once(self, policy: EvictionPolicy):
        records = _records(5)
        with patch.object(policy.codec, "compress", wraps=policy.codec.compress) as spy:
            assert policy.enforce(records, CapacityPolicy(max_bytes=100_000)) == 0
        assert spy.call_count == 1

    def test_converges_under_budget(self, policy: EvictionPolicy):
        records = _records(200)
        budget = 819
        removed = policy.enforce(records, CapacityPolicy(max_bytes=budget))
        assert removed > 0
        assert len(records) == 200 - removed
        assert policy.measure(records).compressed_size <= budget

    def test_removes_oldest_first(self, policy: EvictionPolicy):
        records = _records(200)
        newest_id = records[0].id
        policy.enforce(records, CapacityPolicy(max_bytes=819))
        assert records[0].id == newest_id
        assert [r.id for r in records] == [f"rec-{i}" for i in range(len(records))]

    def test_remeasures_in_batches(self, policy: EvictionPolicy):
        records = _records(200)
        with patch.object(policy.codec, "compress", wraps=policy.codec.compress) as spy:
            removed = policy.enforce(records, CapacityPolicy(max_bytes=819))
        assert removed % 5 == 0 or not records
        # One initial measurement plus one per batch of five removals
        assert spy.call_count == 1 + -(-removed // 5)

    def test_budget_too_small_empties_log(self, policy: EvictionPolicy):
        records = _records(7)
        assert policy.enforce(records, CapacityPolicy(max_bytes=1)) == 7
        assert records == []

    def test_compression_failure_propagates(self, policy: EvictionPolicy):
        records = _records(5)
        with patch.object(
            policy.codec, "compress", side_effect=CompressionError("boom")
        ), pytest.raises(CompressionError):
            policy.enforce(records, CapacityPolicy(max_bytes=10))
        assert len(records) == 5

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            EvictionPolicy(CompressionCodec(), RecordOptimizer(), remeasure_interval=0)
