"""File-backed key/value storage.

Each key is stored as one UTF-8 file under a directory. Writes go to a
temporary file in the same directory and are moved into place, so a
reader never observes a half-written value.
"""

import logging
import os
import re
import tempfile
from pathlib import Path

from activity_monitor.exceptions import BackendIOError
from activity_monitor.storage.backends.base import KeyValueStorage

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileKeyValueStorage(KeyValueStorage):
    """KeyValueStorage persisted as one file per key."""

    suffix = ".json"

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """Map a key to its file, replacing characters unsafe in filenames."""
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}{self.suffix}"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BackendIOError(f"Failed to read {path}: {e}", cause=e) from e

    def set_item(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=self.suffix)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise BackendIOError(f"Failed to write {path}: {e}", cause=e) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug(f"Wrote {len(value)} chars to {path}")

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise BackendIOError(f"Failed to remove {path}: {e}", cause=e) from e
