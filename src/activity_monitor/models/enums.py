"""Enum types for activity-monitor.

Type-safe enumerations for storage modes, media kinds, notification types
and store events. Values match the strings persisted in config files and
payloads.
"""

from enum import Enum


class StorageMode(str, Enum):
    """Persistence backend selection."""

    LOCAL_STORAGE = "local-storage"  # count-bounded keyed store
    CHARACTER_SAVE = "character-save"  # size-bounded slot
    MEMORY_ONLY = "memory-only"  # volatile

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all mode values."""
        return [m.value for m in cls]


class CharacterSaveType(str, Enum):
    """How the character save slot ceiling is enforced."""

    PERCENTAGE = "percentage"
    LINE_COUNT = "line-count"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all save types."""
        return [t.value for t in cls]


class MediaKind(str, Enum):
    """Kinds of symbolic media reference."""

    ITEM = "item"
    SKILL = "skill"
    CURRENCY = "currency"
    MASTERY = "mastery"
    MARK = "mark"
    STATIC = "static"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all kinds."""
        return [k.value for k in cls]


class NotificationType(str, Enum):
    """Notification categories emitted by the capture layer."""

    ERROR = "Error"
    SUCCESS = "Success"
    INFO = "Info"
    ADD_ITEM = "AddItem"
    REMOVE_ITEM = "RemoveItem"
    ADD_GP = "AddGP"
    REMOVE_GP = "RemoveGP"
    ADD_SLAYER_COINS = "AddSlayerCoins"
    REMOVE_SLAYER_COINS = "RemoveSlayerCoins"
    ADD_CURRENCY = "AddCurrency"
    REMOVE_CURRENCY = "RemoveCurrency"
    SKILL_XP = "SkillXP"
    ABYSSAL_XP = "AbyssalXP"
    MASTERY_LEVEL = "MasteryLevel"
    SUMMONING_MARK = "SummoningMark"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all notification types."""
        return [t.value for t in cls]


class StoreEvent(str, Enum):
    """Change notifications produced by the activity store."""

    RECORD_ADDED = "record-added"
    RECORD_UPDATED = "record-updated"


class TimestampFormat(str, Enum):
    """How the CLI renders record timestamps."""

    RELATIVE = "relative"
    ABSOLUTE = "absolute"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all formats."""
        return [f.value for f in cls]
