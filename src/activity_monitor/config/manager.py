"""Live settings with change notifications.

SettingsManager exposes the preference sections through flat keys (the
names the store and capture layer read) and notifies subscribers after
every accepted change.
"""

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from activity_monitor.config.preferences import (
    CapturePreferences,
    Preferences,
    load_preferences,
    save_preferences,
)
from activity_monitor.constants import (
    ERROR_INVALID_SETTING_VALUE,
    ERROR_UNKNOWN_SETTING,
    GROUPING_WINDOW_ALWAYS,
    GROUPING_WINDOW_NEVER,
    SETTING_CAPTURE_ENABLED,
    SETTING_CAPTURE_TYPE_PREFIX,
    SETTING_CHARACTER_SAVE_LINE_COUNT,
    SETTING_CHARACTER_SAVE_PERCENTAGE,
    SETTING_CHARACTER_SAVE_TYPE,
    SETTING_GROUP_SIMILAR,
    SETTING_GROUP_SIMILAR_TIME_WINDOW,
    SETTING_LOCAL_STORAGE_LINE_COUNT,
    SETTING_LOG_LEVEL,
    SETTING_STORAGE_MODE,
    SETTING_TIMESTAMP_FORMAT,
)
from activity_monitor.exceptions import ValidationError
from activity_monitor.models.enums import NotificationType

logger = logging.getLogger(__name__)

# Flat key -> (preferences section, attribute)
SETTING_FIELDS: dict[str, tuple[str, str]] = {
    SETTING_STORAGE_MODE: ("storage", "mode"),
    SETTING_CHARACTER_SAVE_TYPE: ("storage", "character_save_type"),
    SETTING_CHARACTER_SAVE_PERCENTAGE: ("storage", "character_save_percentage"),
    SETTING_CHARACTER_SAVE_LINE_COUNT: ("storage", "character_save_line_count"),
    SETTING_LOCAL_STORAGE_LINE_COUNT: ("storage", "local_storage_line_count"),
    SETTING_GROUP_SIMILAR: ("grouping", "enabled"),
    SETTING_GROUP_SIMILAR_TIME_WINDOW: ("grouping", "time_window"),
    SETTING_CAPTURE_ENABLED: ("capture", "enabled"),
    SETTING_TIMESTAMP_FORMAT: ("display", "timestamp_format"),
    SETTING_LOG_LEVEL: ("logging", "level"),
}


@dataclass(frozen=True)
class SettingChange:
    """A single accepted setting change."""

    key: str
    old_value: Any
    new_value: Any


SettingListener = Callable[[SettingChange], None]


def capture_type_key(notification_type: str) -> str:
    """Flat key of a per-type capture toggle, e.g. ``capture.AddGP``."""
    return f"{SETTING_CAPTURE_TYPE_PREFIX}{notification_type}"


def _capture_type_of(key: str) -> str | None:
    if not key.startswith(SETTING_CAPTURE_TYPE_PREFIX):
        return None
    notification_type = key[len(SETTING_CAPTURE_TYPE_PREFIX) :]
    return notification_type if notification_type in NotificationType.values() else None


def is_known_setting(key: str) -> bool:
    return key in SETTING_FIELDS or _capture_type_of(key) is not None


def parse_setting_value(key: str, raw: str) -> Any:
    """Convert command-line text into the type a setting expects.

    Args:
        key: Flat setting key.
        raw: Text value.

    Returns:
        Parsed value (bool, int or str).

    Raises:
        ValidationError: If the key is unknown or the text does not parse.
    """
    if not is_known_setting(key):
        raise ValidationError(ERROR_UNKNOWN_SETTING.format(key=key), field=key, value=raw)

    current = SettingsManager().get(key)
    text = raw.strip()
    if isinstance(current, bool):
        lowered = text.lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ValidationError(
            ERROR_INVALID_SETTING_VALUE.format(key=key, value=raw),
            field=key,
            value=raw,
            expected="true or false",
        )
    if key == SETTING_GROUP_SIMILAR_TIME_WINDOW and text in (
        GROUPING_WINDOW_NEVER,
        GROUPING_WINDOW_ALWAYS,
    ):
        return text
    if isinstance(current, int):
        try:
            return int(text)
        except ValueError as e:
            raise ValidationError(
                ERROR_INVALID_SETTING_VALUE.format(key=key, value=raw),
                field=key,
                value=raw,
                expected="integer",
            ) from e
    return text


class SettingsManager:
    """Flat-key settings reader/writer over Preferences.

    Satisfies the store's settings interface: synchronous ``get`` plus
    ``subscribe`` for change notifications.
    """

    def __init__(self, preferences: Preferences | None = None, data_dir: Path | None = None):
        """Initialize the manager.

        Args:
            preferences: Starting preferences (defaults if omitted).
            data_dir: When set, accepted changes are written to its config.yaml.
        """
        self._prefs = preferences or Preferences()
        self.data_dir = data_dir
        self._listeners: list[SettingListener] = []

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "SettingsManager":
        """Load preferences from ``data_dir`` and bind the manager to it."""
        return cls(load_preferences(data_dir), data_dir=data_dir)

    @property
    def preferences(self) -> Preferences:
        return self._prefs

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a setting by flat key.

        Unknown keys log a warning and return ``default``.
        """
        notification_type = _capture_type_of(key)
        if notification_type is not None:
            return self._prefs.capture.is_type_enabled(notification_type)
        field_ref = SETTING_FIELDS.get(key)
        if field_ref is None:
            logger.warning(f"Unknown setting requested: {key}")
            return default
        section, attr = field_ref
        return getattr(getattr(self._prefs, section), attr)

    def get_all(self) -> dict[str, Any]:
        """Return every setting as a flat key/value mapping."""
        values = {key: self.get(key) for key in SETTING_FIELDS}
        for notification_type in NotificationType.values():
            key = capture_type_key(notification_type)
            values[key] = self.get(key)
        return values

    def set(self, key: str, value: Any) -> None:
        """Validate, store and broadcast a setting change.

        Args:
            key: Flat setting key.
            value: New value, already of the expected type.

        Raises:
            ValidationError: If the key is unknown or the value is invalid.
        """
        if not is_known_setting(key):
            raise ValidationError(ERROR_UNKNOWN_SETTING.format(key=key), field=key, value=value)

        old_value = self.get(key)
        if old_value == value and type(old_value) is type(value):
            return

        notification_type = _capture_type_of(key)
        if notification_type is not None:
            capture = self._prefs.capture
            types = dict(capture.types)
            types[notification_type] = value
            self._prefs.capture = CapturePreferences(enabled=capture.enabled, types=types)
        else:
            section, attr = SETTING_FIELDS[key]
            # replace() re-runs the section's validation
            updated = dataclasses.replace(getattr(self._prefs, section), **{attr: value})
            setattr(self._prefs, section, updated)

        if self.data_dir is not None:
            save_preferences(self.data_dir, self._prefs)

        logger.info(f"Setting changed: {key} = {value!r}")
        self._notify(SettingChange(key=key, old_value=old_value, new_value=value))

    def subscribe(self, listener: SettingListener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: SettingChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.error(f"Settings listener failed for {change.key}", exc_info=True)
