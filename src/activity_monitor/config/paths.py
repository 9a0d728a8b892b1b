"""Data directory layout.

    <data_dir>/
    ├── config.yaml            user preferences
    ├── character/             character save slot storage
    └── local/                 per-profile local storage
"""

from pathlib import Path

from activity_monitor.constants import (
    CONFIG_FILENAME,
    LOCAL_STORAGE_DIR,
    SLOT_STORAGE_DIR,
)


def config_file_path(data_dir: Path) -> Path:
    return Path(data_dir) / CONFIG_FILENAME


def slot_storage_dir(data_dir: Path) -> Path:
    return Path(data_dir) / SLOT_STORAGE_DIR


def local_storage_dir(data_dir: Path) -> Path:
    return Path(data_dir) / LOCAL_STORAGE_DIR