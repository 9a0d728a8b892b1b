"""Payload compression for persisted activity logs.

Values are serialized to compact JSON, UTF-8 encoded and compressed with
DEFLATE (zlib container). When zlib is unavailable in the running
interpreter the serialized bytes are stored as-is; the payload shape is the
same either way.

Base64 transport encoding happens at the backend boundary, not here.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from activity_monitor.constants import PAYLOAD_FORMAT_VERSION
from activity_monitor.exceptions import CompressionError

try:
    import zlib
except ImportError:  # pragma: no cover - minimal interpreter builds
    zlib = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_ZLIB_ERRORS: tuple[type[Exception], ...] = (zlib.error,) if zlib is not None else ()


@dataclass
class CompressedPayload:
    """Compressed bytes plus the metadata needed to reverse them.

    Attributes:
        data: Compressed (or, without zlib, raw serialized) bytes.
        uncompressed_size: Byte length of the serialized JSON text.
        version: Payload format version.
    """

    data: bytes
    uncompressed_size: int
    version: int = PAYLOAD_FORMAT_VERSION

    @property
    def compressed_size(self) -> int:
        return len(self.data)


class CompressionCodec:
    """Serialize-and-compress codec for JSON-compatible values."""

    def __init__(self, level: int = -1):
        """Initialize the codec.

        Args:
            level: zlib compression level (-1 selects the library default).
        """
        self.level = level

    @staticmethod
    def is_supported() -> bool:
        """Check whether DEFLATE compression is available."""
        return zlib is not None

    @staticmethod
    def serialize(value: Any) -> bytes:
        """Encode a value as compact UTF-8 JSON."""
        try:
            text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CompressionError(f"Value is not JSON serializable: {e}", cause=e) from e
        return text.encode("utf-8")

    def compress(self, value: Any) -> CompressedPayload:
        """Serialize and compress a value.

        Args:
            value: Any JSON-compatible value.

        Returns:
            CompressedPayload with the current format version.

        Raises:
            CompressionError: If serialization or compression fails.
        """
        raw = self.serialize(value)

        if not self.is_supported():
            logger.warning("zlib not available - storing uncompressed")
            return CompressedPayload(data=raw, uncompressed_size=len(raw))

        try:
            compressed = zlib.compress(raw, self.level)
        except zlib.error as e:
            logger.error(f"Compression failed: {e}")
            raise CompressionError(f"Compression failed: {e}", cause=e) from e

        if raw:
            ratio = (1 - len(compressed) / len(raw)) * 100
            logger.debug(
                f"Compressed {len(raw)} bytes -> {len(compressed)} bytes ({ratio:.1f}% reduction)"
            )
        return CompressedPayload(data=compressed, uncompressed_size=len(raw))

    def decompress(self, payload: CompressedPayload) -> Any:
        """Reverse compress().

        Args:
            payload: Payload produced by compress().

        Returns:
            The decoded value.

        Raises:
            CompressionError: On unknown format version, corrupt data or
                invalid JSON.
        """
        if payload.version != PAYLOAD_FORMAT_VERSION:
            raise CompressionError(
                f"Unsupported payload format version: {payload.version}",
                version=payload.version,
            )

        try:
            if self.is_supported():
                raw = zlib.decompress(payload.data)
            else:
                logger.warning("zlib not available - reading uncompressed")
                raw = payload.data
            value = json.loads(raw.decode("utf-8"))
        except (*_ZLIB_ERRORS, UnicodeDecodeError, ValueError) as e:
            logger.error(f"Decompression failed: {e}")
            raise CompressionError(
                f"Decompression failed: {e}", version=payload.version, cause=e
            ) from e

        logger.debug(f"Decompressed {len(payload.data)} bytes -> {len(raw)} bytes")
        return value
