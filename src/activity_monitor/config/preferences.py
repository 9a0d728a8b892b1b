"""User preferences stored in ``<data_dir>/config.yaml``.

Each YAML section maps to a dataclass that validates itself on creation:

    storage:
      mode: local-storage
      character_save_type: percentage
      character_save_percentage: 20
      character_save_line_count: 50
      local_storage_line_count: 500
    grouping:
      enabled: true
      time_window: 60        # seconds, or "never" / "always"
    capture:
      enabled: true
      AddGP: true
      ...
    display:
      timestamp_format: relative
    logging:
      level: INFO
      rotation: {enabled: true, max_size_mb: 5, backup_count: 3}
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from activity_monitor.config.paths import config_file_path
from activity_monitor.constants import (
    DEFAULT_CHARACTER_SAVE_LINE_COUNT,
    DEFAULT_CHARACTER_SAVE_PERCENTAGE,
    DEFAULT_CHARACTER_SAVE_TYPE,
    DEFAULT_GROUPING_ENABLED,
    DEFAULT_GROUPING_WINDOW_SECONDS,
    DEFAULT_LOCAL_STORAGE_LINE_COUNT,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_MAX_SIZE_MB,
    DEFAULT_LOG_ROTATION_ENABLED,
    DEFAULT_STORAGE_MODE,
    DEFAULT_TIMESTAMP_FORMAT,
    ERROR_UNKNOWN_STORAGE_MODE,
    ERROR_UNKNOWN_STORAGE_MODE_EXPECTED,
    GROUPING_WINDOW_ALWAYS,
    GROUPING_WINDOW_NEVER,
    MAX_CHARACTER_SAVE_PERCENTAGE,
    MAX_LOG_BACKUP_COUNT,
    MAX_LOG_MAX_SIZE_MB,
    MIN_CHARACTER_SAVE_PERCENTAGE,
    MIN_LINE_COUNT,
    MIN_LOG_MAX_SIZE_MB,
    VALID_LOG_LEVELS,
)
from activity_monitor.exceptions import ValidationError
from activity_monitor.models.enums import (
    CharacterSaveType,
    NotificationType,
    StorageMode,
    TimestampFormat,
)

logger = logging.getLogger(__name__)


def _require_int(name: str, value: Any, minimum: int, maximum: int | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an integer",
            field=name,
            value=value,
            expected="integer",
        )
    if value < minimum:
        raise ValidationError(
            f"{name} must be at least {minimum}",
            field=name,
            value=value,
            expected=f">= {minimum}",
        )
    if maximum is not None and value > maximum:
        raise ValidationError(
            f"{name} must be at most {maximum}",
            field=name,
            value=value,
            expected=f"<= {maximum}",
        )


def _require_bool(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ValidationError(
            f"{name} must be true or false",
            field=name,
            value=value,
            expected="boolean",
        )


@dataclass
class StoragePreferences:
    """Persistence backend selection and its limits.

    Attributes:
        mode: Active storage mode.
        character_save_type: How the character save slot is bounded.
        character_save_percentage: Share of the slot byte budget to use.
        character_save_line_count: Record ceiling for line-count slot mode.
        local_storage_line_count: Record ceiling for the local store.
    """

    mode: str = DEFAULT_STORAGE_MODE
    character_save_type: str = DEFAULT_CHARACTER_SAVE_TYPE
    character_save_percentage: int = DEFAULT_CHARACTER_SAVE_PERCENTAGE
    character_save_line_count: int = DEFAULT_CHARACTER_SAVE_LINE_COUNT
    local_storage_line_count: int = DEFAULT_LOCAL_STORAGE_LINE_COUNT

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValidationError: If any configuration value is invalid.
        """
        if self.mode not in StorageMode.values():
            raise ValidationError(
                ERROR_UNKNOWN_STORAGE_MODE.format(mode=self.mode),
                field="mode",
                value=self.mode,
                expected=ERROR_UNKNOWN_STORAGE_MODE_EXPECTED.format(
                    modes=", ".join(StorageMode.values())
                ),
            )
        if self.character_save_type not in CharacterSaveType.values():
            raise ValidationError(
                f"Unknown character save type: {self.character_save_type}",
                field="character_save_type",
                value=self.character_save_type,
                expected=f"one of {', '.join(CharacterSaveType.values())}",
            )
        _require_int(
            "character_save_percentage",
            self.character_save_percentage,
            MIN_CHARACTER_SAVE_PERCENTAGE,
            MAX_CHARACTER_SAVE_PERCENTAGE,
        )
        _require_int("character_save_line_count", self.character_save_line_count, MIN_LINE_COUNT)
        _require_int("local_storage_line_count", self.local_storage_line_count, MIN_LINE_COUNT)

    @property
    def storage_mode(self) -> StorageMode:
        return StorageMode(self.mode)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoragePreferences":
        """Create config from dictionary."""
        return cls(
            mode=data.get("mode", DEFAULT_STORAGE_MODE),
            character_save_type=data.get("character_save_type", DEFAULT_CHARACTER_SAVE_TYPE),
            character_save_percentage=data.get(
                "character_save_percentage", DEFAULT_CHARACTER_SAVE_PERCENTAGE
            ),
            character_save_line_count=data.get(
                "character_save_line_count", DEFAULT_CHARACTER_SAVE_LINE_COUNT
            ),
            local_storage_line_count=data.get(
                "local_storage_line_count", DEFAULT_LOCAL_STORAGE_LINE_COUNT
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode,
            "character_save_type": self.character_save_type,
            "character_save_percentage": self.character_save_percentage,
            "character_save_line_count": self.character_save_line_count,
            "local_storage_line_count": self.local_storage_line_count,
        }


@dataclass
class GroupingPreferences:
    """Duplicate grouping configuration.

    Attributes:
        enabled: Whether similar events merge into one record.
        time_window: Window in seconds, or "never" (grouping off) or
            "always" (no time bound).
    """

    enabled: bool = DEFAULT_GROUPING_ENABLED
    time_window: int | str = DEFAULT_GROUPING_WINDOW_SECONDS

    def __post_init__(self) -> None:
        _require_bool("enabled", self.enabled)
        if isinstance(self.time_window, str):
            if self.time_window not in (GROUPING_WINDOW_NEVER, GROUPING_WINDOW_ALWAYS):
                raise ValidationError(
                    f"Invalid grouping time window: {self.time_window}",
                    field="time_window",
                    value=self.time_window,
                    expected=f"seconds > 0, '{GROUPING_WINDOW_NEVER}' or '{GROUPING_WINDOW_ALWAYS}'",
                )
        else:
            _require_int("time_window", self.time_window, 1)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GroupingPreferences":
        return cls(
            enabled=data.get("enabled", DEFAULT_GROUPING_ENABLED),
            time_window=data.get("time_window", DEFAULT_GROUPING_WINDOW_SECONDS),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "time_window": self.time_window}


def _default_capture_types() -> dict[str, bool]:
    return {notification_type: True for notification_type in NotificationType.values()}


@dataclass
class CapturePreferences:
    """Master and per-type capture toggles.

    Attributes:
        enabled: Master toggle; when off nothing is captured.
        types: One toggle per notification type.
    """

    enabled: bool = True
    types: dict[str, bool] = field(default_factory=_default_capture_types)

    def __post_init__(self) -> None:
        _require_bool("enabled", self.enabled)
        for notification_type, enabled in self.types.items():
            if notification_type not in NotificationType.values():
                raise ValidationError(
                    f"Unknown notification type: {notification_type}",
                    field="capture",
                    value=notification_type,
                    expected=f"one of {', '.join(NotificationType.values())}",
                )
            _require_bool(notification_type, enabled)

    def is_type_enabled(self, notification_type: str) -> bool:
        return self.types.get(notification_type, True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CapturePreferences":
        types = _default_capture_types()
        for key, value in data.items():
            if key != "enabled":
                types[key] = value
        return cls(enabled=data.get("enabled", True), types=types)

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, **self.types}


@dataclass
class DisplayPreferences:
    """CLI rendering options."""

    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT

    def __post_init__(self) -> None:
        if self.timestamp_format not in TimestampFormat.values():
            raise ValidationError(
                f"Unknown timestamp format: {self.timestamp_format}",
                field="timestamp_format",
                value=self.timestamp_format,
                expected=f"one of {', '.join(TimestampFormat.values())}",
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DisplayPreferences":
        return cls(timestamp_format=data.get("timestamp_format", DEFAULT_TIMESTAMP_FORMAT))

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp_format": self.timestamp_format}


@dataclass
class LogRotationConfig:
    """Configuration for log file rotation.

    Attributes:
        enabled: Whether to enable log rotation.
        max_size_mb: Maximum log file size in megabytes before rotation.
        backup_count: Number of backup files to keep.
    """

    enabled: bool = DEFAULT_LOG_ROTATION_ENABLED
    max_size_mb: int = DEFAULT_LOG_MAX_SIZE_MB
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        _require_int("max_size_mb", self.max_size_mb, MIN_LOG_MAX_SIZE_MB, MAX_LOG_MAX_SIZE_MB)
        _require_int("backup_count", self.backup_count, 0, MAX_LOG_BACKUP_COUNT)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogRotationConfig":
        return cls(
            enabled=data.get("enabled", DEFAULT_LOG_ROTATION_ENABLED),
            max_size_mb=data.get("max_size_mb", DEFAULT_LOG_MAX_SIZE_MB),
            backup_count=data.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "max_size_mb": self.max_size_mb,
            "backup_count": self.backup_count,
        }

    def get_max_bytes(self) -> int:
        """Get maximum log file size in bytes."""
        return self.max_size_mb * 1024 * 1024


@dataclass
class LoggingPreferences:
    """Log level and rotation."""

    level: str = DEFAULT_LOG_LEVEL
    rotation: LogRotationConfig = field(default_factory=LogRotationConfig)

    def __post_init__(self) -> None:
        self.level = str(self.level).upper()
        if self.level not in VALID_LOG_LEVELS:
            raise ValidationError(
                f"Invalid log level: {self.level}",
                field="level",
                value=self.level,
                expected=f"one of {', '.join(VALID_LOG_LEVELS)}",
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoggingPreferences":
        return cls(
            level=data.get("level", DEFAULT_LOG_LEVEL),
            rotation=LogRotationConfig.from_dict(data.get("rotation") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "rotation": self.rotation.to_dict()}


@dataclass
class Preferences:
    """All user preferences, one attribute per YAML section."""

    storage: StoragePreferences = field(default_factory=StoragePreferences)
    grouping: GroupingPreferences = field(default_factory=GroupingPreferences)
    capture: CapturePreferences = field(default_factory=CapturePreferences)
    display: DisplayPreferences = field(default_factory=DisplayPreferences)
    logging: LoggingPreferences = field(default_factory=LoggingPreferences)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Preferences":
        """Create preferences from a parsed YAML document.

        Raises:
            ValidationError: If any section holds an invalid value.
        """
        return cls(
            storage=StoragePreferences.from_dict(data.get("storage") or {}),
            grouping=GroupingPreferences.from_dict(data.get("grouping") or {}),
            capture=CapturePreferences.from_dict(data.get("capture") or {}),
            display=DisplayPreferences.from_dict(data.get("display") or {}),
            logging=LoggingPreferences.from_dict(data.get("logging") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "storage": self.storage.to_dict(),
            "grouping": self.grouping.to_dict(),
            "capture": self.capture.to_dict(),
            "display": self.display.to_dict(),
            "logging": self.logging.to_dict(),
        }


def _write_yaml_config(path: Path, data: dict[str, Any]) -> None:
    """Write a dictionary to a YAML file, keeping key order.

    Args:
        path: File path to write.
        data: Dictionary to serialize.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def load_preferences(data_dir: Path) -> Preferences:
    """Load preferences from the data directory.

    Args:
        data_dir: Data directory holding config.yaml.

    Returns:
        Preferences (defaults if not configured).

    Note:
        Returns defaults on error rather than raising, so a broken config
        file never prevents the log from loading.
    """
    config_file = config_file_path(data_dir)

    if not config_file.exists():
        logger.debug(f"No config file at {config_file}, using defaults")
        return Preferences()

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(f"Config file {config_file} is not a mapping, using defaults")
            return Preferences()
        prefs = Preferences.from_dict(data)
        logger.debug(f"Loaded preferences: storage mode={prefs.storage.mode}")
        return prefs

    except ValidationError as e:
        logger.warning(f"Invalid config in {config_file}: {e}")
        logger.info("Using default configuration")
        return Preferences()

    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config YAML from {config_file}: {e}")
        return Preferences()

    except OSError as e:
        logger.warning(f"Failed to read config from {config_file}: {e}")
        return Preferences()


def save_preferences(data_dir: Path, prefs: Preferences) -> None:
    """Save preferences to ``<data_dir>/config.yaml``.

    Args:
        data_dir: Data directory.
        prefs: Preferences to write.
    """
    config_file = config_file_path(data_dir)
    _write_yaml_config(config_file, prefs.to_dict())
    logger.info(f"Saved preferences to {config_file}")
