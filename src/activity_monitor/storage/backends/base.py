"""Base classes for persistence backends.

Defines the raw key/value primitive the backends write through, the
capacity policy each backend advertises, and the abstract backend
interface. Backends move CompressedPayload objects; the JSON envelope and
base64 transport encoding live here, at the backend boundary.
"""

import base64
import binascii
import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from activity_monitor.constants import (
    PAYLOAD_KEY_DATA,
    PAYLOAD_KEY_UNCOMPRESSED_SIZE,
    PAYLOAD_KEY_VERSION,
    UNBOUNDED_ESTIMATED_MAX_COUNT,
)
from activity_monitor.exceptions import PayloadDecodeError
from activity_monitor.models.enums import StorageMode
from activity_monitor.storage.compression import CompressedPayload

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Raw string key/value primitive supplied by the host.

    Implementations raise BackendIOError when the underlying medium fails.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""
        ...


@dataclass(frozen=True)
class CapacityPolicy:
    """Capacity ceiling advertised by a backend.

    At most one of the two limits is set. Neither set means unbounded.

    Attributes:
        max_bytes: Compressed-size budget in bytes.
        max_items: Record count ceiling.
    """

    max_bytes: int | None = None
    max_items: int | None = None

    @property
    def is_size_bounded(self) -> bool:
        return self.max_bytes is not None

    @property
    def is_count_bounded(self) -> bool:
        return self.max_items is not None

    @property
    def is_unbounded(self) -> bool:
        return self.max_bytes is None and self.max_items is None

    def estimate_max_count(self, bytes_per_record: float) -> int:
        """Estimate how many records fit under this policy.

        Args:
            bytes_per_record: Average compressed bytes per record.

        Returns:
            Estimated record capacity.
        """
        if self.max_items is not None:
            return self.max_items
        if self.max_bytes is not None:
            if bytes_per_record <= 0:
                return UNBOUNDED_ESTIMATED_MAX_COUNT
            return math.floor(self.max_bytes / bytes_per_record)
        return UNBOUNDED_ESTIMATED_MAX_COUNT


def to_base64(data: bytes) -> str:
    """Encode bytes as ASCII base64 text."""
    return base64.b64encode(data).decode("ascii")


def from_base64(text: str) -> bytes:
    """Decode base64 text back to bytes.

    Raises:
        PayloadDecodeError: If the text is not valid base64.
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"Invalid base64 payload data: {e}", cause=e) from e


def encode_envelope(payload: CompressedPayload) -> str:
    """Wrap a payload in the persisted JSON envelope."""
    return json.dumps(
        {
            PAYLOAD_KEY_DATA: to_base64(payload.data),
            PAYLOAD_KEY_UNCOMPRESSED_SIZE: payload.uncompressed_size,
            PAYLOAD_KEY_VERSION: payload.version,
        },
        separators=(",", ":"),
    )


def decode_envelope(text: str, backend: str | None = None) -> CompressedPayload:
    """Parse a persisted JSON envelope.

    Args:
        text: Stored envelope text.
        backend: Backend name for error context.

    Returns:
        CompressedPayload ready for decompression.

    Raises:
        PayloadDecodeError: If the envelope is malformed.
    """
    try:
        envelope = json.loads(text)
    except ValueError as e:
        raise PayloadDecodeError(
            f"Stored payload is not valid JSON: {e}", backend=backend, cause=e
        ) from e

    if not isinstance(envelope, dict) or not isinstance(envelope.get(PAYLOAD_KEY_DATA), str):
        raise PayloadDecodeError("Stored payload is missing its data field", backend=backend)

    try:
        uncompressed_size = int(envelope.get(PAYLOAD_KEY_UNCOMPRESSED_SIZE, 0))
        version = int(envelope[PAYLOAD_KEY_VERSION])
    except (KeyError, TypeError, ValueError) as e:
        raise PayloadDecodeError(
            f"Stored payload has invalid metadata: {e}", backend=backend, cause=e
        ) from e

    return CompressedPayload(
        data=from_base64(envelope[PAYLOAD_KEY_DATA]),
        uncompressed_size=uncompressed_size,
        version=version,
    )


class StorageBackend(ABC):
    """Abstract persistence target for the activity log.

    Implementations expose a byte-level get/set pair and the capacity
    policy eviction must honour. Backends never enforce their own
    ceiling; eviction does.
    """

    mode: StorageMode

    @property
    def name(self) -> str:
        """Human-readable backend name (the storage mode value)."""
        return self.mode.value

    @property
    def persists(self) -> bool:
        """Whether writes survive the process."""
        return True

    @property
    @abstractmethod
    def capacity(self) -> CapacityPolicy:
        """Capacity ceiling for this backend."""
        ...

    @abstractmethod
    def get_bytes(self) -> CompressedPayload | None:
        """Read the stored payload.

        Returns:
            The payload, or None when nothing has been stored.

        Raises:
            BackendIOError: If the raw storage read fails.
            PayloadDecodeError: If the stored envelope is malformed.
        """
        ...

    @abstractmethod
    def set_bytes(self, payload: CompressedPayload) -> None:
        """Write a payload, replacing the previous snapshot.

        Raises:
            BackendIOError: If the raw storage write fails.
        """
        ...


class KeyValueBackend(StorageBackend):
    """Backend storing its envelope under one key of a KeyValueStorage."""

    def __init__(self, storage: KeyValueStorage, key: str):
        self.storage = storage
        self.key = key

    def get_bytes(self) -> CompressedPayload | None:
        text = self.storage.get_item(self.key)
        if not text:
            return None
        return decode_envelope(text, backend=self.name)

    def set_bytes(self, payload: CompressedPayload) -> None:
        envelope = encode_envelope(payload)
        self._check_written_size(envelope)
        self.storage.set_item(self.key, envelope)
        logger.debug(
            f"Saved {payload.compressed_size / 1024:.2f}KB to {self.name} (key={self.key})"
        )

    def _check_written_size(self, envelope: str) -> None:
        """Hook for backends with a hard host ceiling."""
        return None
