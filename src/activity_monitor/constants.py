"""Constants for activity-monitor.

This module centralizes the magic strings and numbers used across the
package.

Constants are organized by domain:
- Storage modes and limits
- Persisted payload format
- Media references
- Grouping
- Settings keys
- Capture
- Logging
"""

from typing import Final

# =============================================================================
# Storage Modes
# =============================================================================

STORAGE_MODE_LOCAL: Final[str] = "local-storage"
STORAGE_MODE_CHARACTER: Final[str] = "character-save"
STORAGE_MODE_MEMORY: Final[str] = "memory-only"
VALID_STORAGE_MODES: Final[tuple[str, ...]] = (
    STORAGE_MODE_LOCAL,
    STORAGE_MODE_CHARACTER,
    STORAGE_MODE_MEMORY,
)
DEFAULT_STORAGE_MODE: Final[str] = STORAGE_MODE_LOCAL

CHARACTER_SAVE_TYPE_PERCENTAGE: Final[str] = "percentage"
CHARACTER_SAVE_TYPE_LINE_COUNT: Final[str] = "line-count"
VALID_CHARACTER_SAVE_TYPES: Final[tuple[str, ...]] = (
    CHARACTER_SAVE_TYPE_PERCENTAGE,
    CHARACTER_SAVE_TYPE_LINE_COUNT,
)
DEFAULT_CHARACTER_SAVE_TYPE: Final[str] = CHARACTER_SAVE_TYPE_PERCENTAGE

# Hard byte ceiling of the character save slot
MAX_CHARACTER_SAVE_BYTES: Final[int] = 8192

DEFAULT_CHARACTER_SAVE_PERCENTAGE: Final[int] = 20
MIN_CHARACTER_SAVE_PERCENTAGE: Final[int] = 10
MAX_CHARACTER_SAVE_PERCENTAGE: Final[int] = 100

DEFAULT_CHARACTER_SAVE_LINE_COUNT: Final[int] = 50
DEFAULT_LOCAL_STORAGE_LINE_COUNT: Final[int] = 500
MIN_LINE_COUNT: Final[int] = 1

# Reported as the estimated max count for memory-only mode
UNBOUNDED_ESTIMATED_MAX_COUNT: Final[int] = 999999

# Average compressed bytes per record assumed when the store is empty
DEFAULT_COMPRESSED_BYTES_PER_RECORD: Final[int] = 60

# Re-measure compressed size after this many evictions
EVICTION_REMEASURE_INTERVAL: Final[int] = 5

# =============================================================================
# Storage Keys
# =============================================================================

CHARACTER_SLOT_KEY: Final[str] = "notifications"
LOCAL_STORE_KEY_PREFIX: Final[str] = "activity-monitor-notifications-"
DEFAULT_PROFILE_ID: Final[str] = "default"

# =============================================================================
# Persistence Timing
# =============================================================================

SAVE_DEBOUNCE_SECONDS: Final[float] = 1.0

# =============================================================================
# Persisted Payload Format
# =============================================================================

PAYLOAD_FORMAT_VERSION: Final[int] = 1
PAYLOAD_KEY_DATA: Final[str] = "data"
PAYLOAD_KEY_UNCOMPRESSED_SIZE: Final[str] = "uncompressedSize"
PAYLOAD_KEY_VERSION: Final[str] = "version"

# Persisted record field names
RECORD_KEY_ID: Final[str] = "id"
RECORD_KEY_TIMESTAMP: Final[str] = "timestamp"
RECORD_KEY_TYPE: Final[str] = "type"
RECORD_KEY_MESSAGE: Final[str] = "message"
RECORD_KEY_COUNT: Final[str] = "count"
RECORD_KEY_QUANTITY: Final[str] = "quantity"
RECORD_KEY_MEDIA: Final[str] = "media"
RECORD_KEY_MEDIA_REF: Final[str] = "mediaRef"
RECORD_KEY_CUSTOM_ID: Final[str] = "customID"

# =============================================================================
# Media References
# =============================================================================

MEDIA_REF_SEPARATOR: Final[str] = ":"

# Fallback (direct link) references are raw URLs, never symbolic
FALLBACK_MEDIA_PREFIX: Final[str] = "dl:"
MAIN_CDN_URL_PREFIX: Final[str] = "https://cdn2-main.melvor.net/assets/media/"
MAIN_CDN_TOKEN: Final[str] = "mainCDN:"
STATIC_MEDIA_PATH_PREFIX: Final[str] = "assets/media/main/"

# =============================================================================
# Grouping
# =============================================================================

DEFAULT_GROUPING_ENABLED: Final[bool] = True
# Used by the store when the settings reader has no value
FALLBACK_GROUPING_WINDOW_SECONDS: Final[int] = 30
DEFAULT_GROUPING_WINDOW_SECONDS: Final[int] = 60
GROUPING_WINDOW_NEVER: Final[str] = "never"
GROUPING_WINDOW_ALWAYS: Final[str] = "always"

# =============================================================================
# Settings Keys (flat keys exposed by SettingsManager)
# =============================================================================

SETTING_STORAGE_MODE: Final[str] = "storage_mode"
SETTING_CHARACTER_SAVE_TYPE: Final[str] = "character_save_type"
SETTING_CHARACTER_SAVE_PERCENTAGE: Final[str] = "character_save_percentage"
SETTING_CHARACTER_SAVE_LINE_COUNT: Final[str] = "character_save_line_count"
SETTING_LOCAL_STORAGE_LINE_COUNT: Final[str] = "local_storage_line_count"
SETTING_GROUP_SIMILAR: Final[str] = "group_similar"
SETTING_GROUP_SIMILAR_TIME_WINDOW: Final[str] = "group_similar_time_window"
SETTING_CAPTURE_ENABLED: Final[str] = "capture_enabled"
SETTING_TIMESTAMP_FORMAT: Final[str] = "timestamp_format"
SETTING_LOG_LEVEL: Final[str] = "log_level"

# Prefix for per-type capture toggles, e.g. "capture.AddGP"
SETTING_CAPTURE_TYPE_PREFIX: Final[str] = "capture."

# Keys whose change alters the eviction ceiling
STORAGE_LIMIT_SETTINGS: Final[frozenset[str]] = frozenset(
    {
        SETTING_CHARACTER_SAVE_TYPE,
        SETTING_CHARACTER_SAVE_PERCENTAGE,
        SETTING_CHARACTER_SAVE_LINE_COUNT,
        SETTING_LOCAL_STORAGE_LINE_COUNT,
    }
)

# =============================================================================
# Capture
# =============================================================================

# Notification types whose name contains one of these must carry a quantity
QUANTITY_TYPE_MARKERS: Final[tuple[str, ...]] = ("Item", "GP", "Coins", "Currency", "XP")
INVALID_MESSAGE_MARKERS: Final[tuple[str, ...]] = ("undefined", "null")
RECORD_ID_RANDOM_LENGTH: Final[int] = 4

# =============================================================================
# Display
# =============================================================================

TIMESTAMP_FORMAT_RELATIVE: Final[str] = "relative"
TIMESTAMP_FORMAT_ABSOLUTE: Final[str] = "absolute"
VALID_TIMESTAMP_FORMATS: Final[tuple[str, ...]] = (
    TIMESTAMP_FORMAT_RELATIVE,
    TIMESTAMP_FORMAT_ABSOLUTE,
)
DEFAULT_TIMESTAMP_FORMAT: Final[str] = TIMESTAMP_FORMAT_RELATIVE

# =============================================================================
# Paths
# =============================================================================

DEFAULT_DATA_DIR: Final[str] = ".activity-monitor"
CONFIG_FILENAME: Final[str] = "config.yaml"
SLOT_STORAGE_DIR: Final[str] = "character"
LOCAL_STORAGE_DIR: Final[str] = "local"

# =============================================================================
# Logging
# =============================================================================

LOGGER_NAME: Final[str] = "activity_monitor"
LOG_LEVEL_DEBUG: Final[str] = "DEBUG"
LOG_LEVEL_INFO: Final[str] = "INFO"
LOG_LEVEL_WARNING: Final[str] = "WARNING"
LOG_LEVEL_ERROR: Final[str] = "ERROR"
VALID_LOG_LEVELS: Final[tuple[str, ...]] = (
    LOG_LEVEL_DEBUG,
    LOG_LEVEL_INFO,
    LOG_LEVEL_WARNING,
    LOG_LEVEL_ERROR,
)
DEFAULT_LOG_LEVEL: Final[str] = LOG_LEVEL_INFO

DEFAULT_LOG_ROTATION_ENABLED: Final[bool] = True
DEFAULT_LOG_MAX_SIZE_MB: Final[int] = 5
MIN_LOG_MAX_SIZE_MB: Final[int] = 1
MAX_LOG_MAX_SIZE_MB: Final[int] = 100
DEFAULT_LOG_BACKUP_COUNT: Final[int] = 3
MAX_LOG_BACKUP_COUNT: Final[int] = 10

# =============================================================================
# Error Messages
# =============================================================================

ERROR_UNKNOWN_STORAGE_MODE: Final[str] = "Unknown storage mode: {mode}"
ERROR_UNKNOWN_STORAGE_MODE_EXPECTED: Final[str] = "one of {modes}"
ERROR_UNKNOWN_SETTING: Final[str] = "Unknown setting: {key}"
ERROR_INVALID_SETTING_VALUE: Final[str] = "Invalid value for {key}: {value}"
