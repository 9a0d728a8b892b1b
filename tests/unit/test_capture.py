"""Tests for event validation and capture."""

import logging
import random
import re
from types import SimpleNamespace

import pytest

from activity_monitor.capture import (
    ActivityCapture,
    RawEvent,
    requires_quantity,
    to_base36,
    validate_event,
)
from activity_monitor.config import SettingsManager
from activity_monitor.exceptions import CaptureError, CompressionError
from activity_monitor.models.enums import MediaKind
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage import ActivityStore

ID_PATTERN = re.compile(r"^[0-9a-z]+-[0-9a-z]{4}$")


@pytest.fixture
def capture(settings: SettingsManager, clock) -> ActivityCapture:
    return ActivityCapture(settings, clock=clock, rng=random.Random(3))


# =============================================================================
# Helpers
# =============================================================================


class TestBase36:
    """Compact id prefix encoding."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, "0"), (9, "9"), (10, "a"), (35, "z"), (36, "10"), (1295, "zz")],
    )
    def test_values(self, value: int, expected: str):
        assert to_base36(value) == expected

    def test_matches_int_parsing(self):
        assert int(to_base36(1_700_000_000_000), 36) == 1_700_000_000_000


class TestRequiresQuantity:
    """Quantity-bearing notification types."""

    @pytest.mark.parametrize(
        "notification_type", ["AddItem", "RemoveItem", "AddGP", "RemoveGP", "SkillXP", "AddSlayerCoins"]
    )
    def test_quantity_types(self, notification_type: str):
        assert requires_quantity(notification_type)

    @pytest.mark.parametrize("notification_type", ["Info", "Error", "Success", "MasteryLevel"])
    def test_plain_types(self, notification_type: str):
        assert not requires_quantity(notification_type)


# =============================================================================
# Validation
# =============================================================================


class TestValidateEvent:
    """Rejecting incomplete or placeholder events."""

    def test_valid_events(self):
        validate_event(RawEvent("Info", "Game saved"))
        validate_event(RawEvent("AddGP", "+5 GP", quantity=5))
        validate_event(RawEvent("AddItem", "+0.5 Logs", quantity=0.5))

    @pytest.mark.parametrize(
        "event",
        [
            RawEvent("", "message"),
            RawEvent("Info", ""),
            RawEvent("Info", "   "),
            RawEvent("Info", "Found undefined"),
            RawEvent("Info", "Item is null"),
            RawEvent("AddGP", "+? GP"),
            RawEvent("AddGP", "+5 GP", quantity=True),
            RawEvent("AddGP", "+5 GP", quantity="5"),  # type: ignore[arg-type]
            RawEvent("AddItem", "+? Logs", quantity=float("nan")),
        ],
    )
    def test_invalid_events(self, event: RawEvent):
        with pytest.raises(CaptureError):
            validate_event(event)

    def test_error_carries_type(self):
        with pytest.raises(CaptureError) as exc_info:
            validate_event(RawEvent("AddGP", "+? GP"))
        assert exc_info.value.details["event_type"] == "AddGP"


# =============================================================================
# Capture
# =============================================================================


class TestCapture:
    """Building records and fanning them out."""

    def test_builds_record(self, capture: ActivityCapture, clock):
        record = capture.capture(RawEvent("AddGP", "+5 GP", quantity=5, custom_id="c1"))
        assert record is not None
        assert record.type == "AddGP"
        assert record.message == "+5 GP"
        assert record.quantity == 5
        assert record.count == 1
        assert record.custom_id == "c1"
        assert record.timestamp == clock()

    def test_id_format(self, capture: ActivityCapture, clock):
        record = capture.capture(RawEvent("Info", "Hello"))
        assert ID_PATTERN.match(record.id)
        assert record.id.split("-")[0] == to_base36(clock())

    def test_ids_are_unique(self, capture: ActivityCapture, clock):
        ids = set()
        for _ in range(200):
            ids.add(capture.generate_id())
            clock.advance(ms=1)
        assert len(ids) == 200

    def test_invalid_event_is_dropped(
        self, capture: ActivityCapture, caplog: pytest.LogCaptureFixture
    ):
        received: list[ActivityRecord] = []
        capture.on_capture(received.append)
        with caplog.at_level(logging.DEBUG, logger="activity_monitor"):
            assert capture.capture(RawEvent("Info", "null")) is None
        assert received == []
        assert capture.get_stats() == {"total_captured": 0}
        assert "Skipping invalid event" in caplog.text

    def test_callbacks_receive_record(self, capture: ActivityCapture):
        first: list[ActivityRecord] = []
        second: list[ActivityRecord] = []
        capture.on_capture(first.append)
        unsubscribe = capture.on_capture(second.append)

        capture.capture(RawEvent("Info", "one"))
        unsubscribe()
        capture.capture(RawEvent("Info", "two"))

        assert [r.message for r in first] == ["one", "two"]
        assert [r.message for r in second] == ["one"]

    def test_stats_count_captured(self, capture: ActivityCapture):
        capture.capture(RawEvent("Info", "one"))
        capture.capture(RawEvent("Info", "two"))
        capture.capture(RawEvent("Info", "undefined"))
        assert capture.get_stats() == {"total_captured": 2}

    def test_without_settings_captures_everything(self):
        assert ActivityCapture().capture(RawEvent("Info", "Hello")) is not None


class TestCaptureToggles:
    """Global and per-type capture switches."""

    def test_global_toggle(self, settings: SettingsManager, capture: ActivityCapture):
        settings.set("capture_enabled", False)
        assert capture.capture(RawEvent("Info", "Hello")) is None
        settings.set("capture_enabled", True)
        assert capture.capture(RawEvent("Info", "Hello")) is not None

    def test_per_type_toggle(self, settings: SettingsManager, capture: ActivityCapture):
        settings.set("capture.AddGP", False)
        assert not capture.should_capture("AddGP")
        assert capture.capture(RawEvent("AddGP", "+5 GP", quantity=5)) is None
        assert capture.capture(RawEvent("Info", "Hello")) is not None

    def test_filtered_event_is_not_validated(
        self, settings: SettingsManager, capture: ActivityCapture,
        caplog: pytest.LogCaptureFixture,
    ):
        settings.set("capture.Info", False)
        with caplog.at_level(logging.DEBUG, logger="activity_monitor"):
            capture.capture(RawEvent("Info", "null"))
        assert "Capture disabled for Info" in caplog.text
        assert "Skipping invalid event" not in caplog.text


class TestCaptureMedia:
    """Symbolic media references derived at capture time."""

    def test_item_source(self, capture: ActivityCapture):
        item = SimpleNamespace(id="melvorD:Oak_Logs")
        record = capture.capture(
            RawEvent(
                "AddItem",
                "+1 Oak Logs",
                quantity=1,
                media="https://cdn2-main.melvor.net/assets/media/bank/logs_oak.png",
                source=item,
                source_kind=MediaKind.ITEM,
            )
        )
        assert record.media_ref == "item:melvorD:Oak_Logs"
        assert record.media.endswith("logs_oak.png")

    def test_static_source(self, capture: ActivityCapture):
        record = capture.capture(
            RawEvent("Info", "Coins", source="main/coins.png", source_kind="static")
        )
        assert record.media_ref == "static:main/coins.png"

    def test_no_source(self, capture: ActivityCapture):
        record = capture.capture(RawEvent("Info", "Hello", media="x.png"))
        assert record.media_ref is None
        assert record.media == "x.png"

    def test_unknown_kind(self, capture: ActivityCapture):
        record = capture.capture(
            RawEvent("Info", "Hello", source=SimpleNamespace(id="x"), source_kind="pet")
        )
        assert record.media_ref is None


class TestCaptureIntoStore:
    """Capture wired to ActivityStore.add."""

    def test_events_reach_store_and_group(
        self, capture: ActivityCapture, store: ActivityStore
    ):
        capture.on_capture(store.add)
        capture.capture(RawEvent("AddGP", "+5 GP", quantity=5))
        capture.capture(RawEvent("AddGP", "+7 GP", quantity=7))
        capture.capture(RawEvent("Info", "Hello"))

        records = store.get_all()
        assert [r.type for r in records] == ["Info", "AddGP"]
        assert records[1].count == 2
        assert records[1].quantity == 12

    def test_store_failure_reaches_producer(
        self, capture: ActivityCapture, store: ActivityStore, monkeypatch: pytest.MonkeyPatch
    ):
        def failing_add(record: ActivityRecord) -> ActivityRecord:
            raise CompressionError("cannot measure")

        monkeypatch.setattr(store, "add", failing_add)
        capture.on_capture(store.add)
        with pytest.raises(CompressionError):
            capture.capture(RawEvent("Info", "Hello"))
