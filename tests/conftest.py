"""Pytest configuration and fixtures for activity-monitor tests."""

import itertools
import logging
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from activity_monitor.config import SettingsManager
from activity_monitor.constants import LOGGER_NAME
from activity_monitor.models.record import ActivityRecord
from activity_monitor.storage import ActivityStore, InMemoryKeyValueStorage

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now_ms += int(seconds * 1000) + ms


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval: float, function: Callable[[], None]):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.function()


class FakeTimerFactory:
    """Records every timer the store schedules."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def fire_all(self) -> None:
        for timer in list(self.timers):
            timer.fire()


class CountingStorage(InMemoryKeyValueStorage):
    """In-memory storage that counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        super().set_item(key, value)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def settings() -> SettingsManager:
    """In-memory settings with default preferences."""
    return SettingsManager()


@pytest.fixture
def slot_storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture
def local_storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture
def make_store(
    settings: SettingsManager,
    clock: FakeClock,
    timers: FakeTimerFactory,
    slot_storage: CountingStorage,
    local_storage: CountingStorage,
) -> Callable[..., ActivityStore]:
    """Build stores sharing the test's settings, clock, timers and storages."""

    def _make(**overrides: Any) -> ActivityStore:
        kwargs: dict[str, Any] = {
            "slot_storage": slot_storage,
            "local_storage": local_storage,
            "clock": clock,
            "timer_factory": timers,
        }
        kwargs.update(overrides)
        return ActivityStore(settings, **kwargs)

    return _make


@pytest.fixture
def store(make_store: Callable[..., ActivityStore]) -> ActivityStore:
    return make_store()


@pytest.fixture
def make_record(clock: FakeClock) -> Callable[..., ActivityRecord]:
    """Build records stamped with the fake clock and sequential ids."""
    ids = itertools.count(1)

    def _make(
        type: str = "Info",
        message: str = "Something happened",
        quantity: float | None = None,
        **fields: Any,
    ) -> ActivityRecord:
        fields.setdefault("id", f"rec-{next(ids)}")
        fields.setdefault("timestamp", clock())
        return ActivityRecord(type=type, message=message, quantity=quantity, **fields)

    return _make
