"""Tests for the activity-monitor CLI."""

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from activity_monitor.cli import app, format_timestamp
from activity_monitor.config import load_preferences

runner = CliRunner()

ENV_VARS = (
    "ACTIVITY_MONITOR_DATA_DIR",
    "ACTIVITY_MONITOR_PROFILE",
    "ACTIVITY_MONITOR_LOG_LEVEL",
    "ACTIVITY_MONITOR_LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def invoke(tmp_path: Path):
    """Run the CLI against a temporary data directory."""

    def _invoke(*args: str, input: str | None = None):
        return runner.invoke(app, ["--data-dir", str(tmp_path), *args], input=input)

    return _invoke


class TestFormatTimestamp:
    """Relative and absolute timestamps."""

    @pytest.mark.parametrize(
        ("age_ms", "expected"),
        [
            (0, "0s ago"),
            (59_999, "59s ago"),
            (60_000, "1m ago"),
            (3_599_999, "59m ago"),
            (7_200_000, "2h ago"),
            (3 * 86_400_000, "3d ago"),
        ],
    )
    def test_relative(self, age_ms: int, expected: str):
        now = 1_700_000_000_000
        assert format_timestamp(now - age_ms, "relative", now_ms=now) == expected

    def test_future_timestamps_clamp_to_zero(self):
        assert format_timestamp(2_000, "relative", now_ms=1_000) == "0s ago"

    def test_absolute(self):
        text = format_timestamp(1_700_000_000_000, "absolute")
        assert len(text) == len("2023-11-14 22:13:20")
        assert text[4] == "-" and text[13] == ":"


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "activity-monitor" in result.output


class TestAddAndList:
    """Capturing events and reading them back."""

    def test_add_then_list(self, invoke):
        result = invoke("add", "Info", "Game saved")
        assert result.exit_code == 0, result.output
        assert "Added Info record" in result.output

        result = invoke("list")
        assert result.exit_code == 0
        assert "Game saved" in result.output

    def test_quantity_events_group(self, invoke):
        assert invoke("add", "AddGP", "+5 GP", "--quantity", "5").exit_code == 0
        result = invoke("add", "AddGP", "+7 GP", "-q", "7")
        assert result.exit_code == 0
        assert "Grouped into existing AddGP record (count=2)" in result.output

        result = invoke("list")
        assert "+5 GP" in result.output
        assert "12" in result.output

    def test_invalid_event_exits_nonzero(self, invoke):
        result = invoke("add", "AddGP", "+? GP")
        assert result.exit_code == 1
        assert "Event not captured" in result.output

    def test_disabled_type_is_not_captured(self, invoke):
        assert invoke("config", "set", "capture.Info", "off").exit_code == 0
        result = invoke("add", "Info", "Hello")
        assert result.exit_code == 1

    def test_list_filter_and_empty(self, invoke):
        result = invoke("list")
        assert "No activity recorded." in result.output

        invoke("add", "Info", "Hello")
        invoke("add", "Error", "Inventory full")
        result = invoke("list", "--type", "Error")
        assert "Inventory full" in result.output
        assert "Hello" not in result.output

    def test_list_limit(self, invoke):
        for i in range(3):
            invoke("add", "Info", f"event-{i}")
        result = invoke("list", "-n", "1")
        assert "event-2" in result.output
        assert "event-0" not in result.output

    def test_media_reference(self, invoke, tmp_path: Path):
        result = invoke(
            "add", "AddItem", "+1 Oak Logs", "-q", "1",
            "--source-kind", "item", "--source-id", "melvorD:Oak_Logs",
        )
        assert result.exit_code == 0
        stored = (tmp_path / "local" / "activity-monitor-notifications-default.json").read_text()
        assert '"version":1' in stored

    def test_record_evicted_on_add(self, invoke):
        assert invoke("config", "set", "storage_mode", "character-save").exit_code == 0
        assert invoke("config", "set", "character_save_percentage", "10").exit_code == 0

        result = invoke("add", "Info", os.urandom(2000).hex())
        assert result.exit_code == 0, result.output
        assert "evicted to fit the storage limit" in result.output
        assert "No activity recorded." in invoke("list").output

    def test_profiles_use_separate_keys(self, tmp_path: Path):
        result = runner.invoke(
            app, ["--data-dir", str(tmp_path), "--profile", "alt", "add", "Info", "Hello"]
        )
        assert result.exit_code == 0
        assert (tmp_path / "local" / "activity-monitor-notifications-alt.json").exists()

        result = runner.invoke(app, ["--data-dir", str(tmp_path), "list"])
        assert "No activity recorded." in result.output


class TestStats:
    def test_stats(self, invoke):
        invoke("add", "Info", "Hello")
        result = invoke("stats")
        assert result.exit_code == 0, result.output
        assert "Records" in result.output
        assert "local-storage" in result.output
        assert "500" in result.output


class TestClear:
    def test_clear_with_yes(self, invoke):
        invoke("add", "Info", "Hello")
        result = invoke("clear", "--yes")
        assert result.exit_code == 0
        assert "No activity recorded." in invoke("list").output

    def test_clear_can_be_declined(self, invoke):
        invoke("add", "Info", "Hello")
        result = invoke("clear", input="n\n")
        assert result.exit_code == 1
        assert "Hello" in invoke("list").output


class TestConfig:
    """config show / config set."""

    def test_show(self, invoke):
        result = invoke("config", "show")
        assert result.exit_code == 0
        assert "storage_mode" in result.output
        assert "local-storage" in result.output

    def test_set_persists(self, invoke, tmp_path: Path):
        result = invoke("config", "set", "group_similar_time_window", "never")
        assert result.exit_code == 0
        assert load_preferences(tmp_path).grouping.time_window == "never"

    def test_storage_mode_change_moves_log(self, invoke, tmp_path: Path):
        invoke("add", "Info", "Hello")
        result = invoke("config", "set", "storage_mode", "character-save")
        assert result.exit_code == 0, result.output
        assert (tmp_path / "character" / "notifications.json").exists()
        assert "Hello" in invoke("list").output

    def test_memory_only_keeps_nothing(self, invoke):
        invoke("config", "set", "storage_mode", "memory-only")
        assert invoke("add", "Info", "Hello").exit_code == 0
        assert "No activity recorded." in invoke("list").output

    def test_unknown_key(self, invoke):
        result = invoke("config", "set", "colour", "red")
        assert result.exit_code == 1
        assert "Unknown setting: colour" in result.output

    def test_invalid_value(self, invoke, tmp_path: Path):
        result = invoke("config", "set", "character_save_percentage", "5")
        assert result.exit_code == 1
        assert load_preferences(tmp_path).storage.character_save_percentage == 20
