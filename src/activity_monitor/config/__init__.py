"""Configuration: environment settings, YAML preferences and the live settings manager."""

from activity_monitor.config.manager import (
    SettingChange,
    SettingsManager,
    capture_type_key,
    parse_setting_value,
)
from activity_monitor.config.preferences import (
    CapturePreferences,
    DisplayPreferences,
    GroupingPreferences,
    LoggingPreferences,
    LogRotationConfig,
    Preferences,
    StoragePreferences,
    load_preferences,
    save_preferences,
)
from activity_monitor.config.settings import RuntimeSettings, get_runtime_settings

__all__ = [
    "CapturePreferences",
    "DisplayPreferences",
    "GroupingPreferences",
    "LogRotationConfig",
    "LoggingPreferences",
    "Preferences",
    "RuntimeSettings",
    "SettingChange",
    "SettingsManager",
    "StoragePreferences",
    "capture_type_key",
    "get_runtime_settings",
    "load_preferences",
    "parse_setting_value",
    "save_preferences",
]
