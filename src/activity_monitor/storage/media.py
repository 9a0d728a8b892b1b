"""Media reference encoding.

Renderable media pointers (URLs) are large and derivable, so records persist
a compact symbolic reference instead:

    "skill:woodcutting"          -> resolver.resolve("skill", "woodcutting")
    "item:melvorD:Oak_Logs"      -> resolver.resolve("item", "melvorD:Oak_Logs")
    "static:coins.png"           -> "assets/media/main/coins.png"
    "dl:mainCDN:path/file.png"   -> "https://cdn2-main.melvor.net/assets/media/path/file.png"

The "dl:" form is a fallback for media with no symbolic form. It is not a
reference kind: the optimizer drops it on load so the next save retries
symbolic derivation.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from activity_monitor.constants import (
    FALLBACK_MEDIA_PREFIX,
    MAIN_CDN_TOKEN,
    MAIN_CDN_URL_PREFIX,
    MEDIA_REF_SEPARATOR,
    STATIC_MEDIA_PATH_PREFIX,
)
from activity_monitor.models.enums import MediaKind

logger = logging.getLogger(__name__)


class MediaResolver(Protocol):
    """Looks up the media pointer of a live object by kind and id."""

    def resolve(self, kind: str, object_id: str) -> str | None:
        """Return the media pointer, or None when the object is unknown."""
        ...


class MappingMediaResolver:
    """MediaResolver backed by a fixed ``{kind: {id: media}}`` mapping."""

    def __init__(self, registry: Mapping[str, Mapping[str, str]] | None = None):
        self._registry: dict[str, dict[str, str]] = {
            kind: dict(objects) for kind, objects in (registry or {}).items()
        }

    def register(self, kind: str, object_id: str, media: str) -> None:
        self._registry.setdefault(kind, {})[object_id] = media

    def resolve(self, kind: str, object_id: str) -> str | None:
        return self._registry.get(kind, {}).get(object_id)

    def find_reference(self, media: str) -> tuple[str, str] | None:
        """Reverse lookup: the (kind, id) whose media pointer equals ``media``."""
        for kind, objects in self._registry.items():
            for object_id, object_media in objects.items():
                if object_media == media:
                    return kind, object_id
        return None


class MediaReferenceCodec:
    """Converts live media sources to symbolic references and back.

    Stateless apart from the injected resolver; never raises on decode.
    """

    def __init__(self, resolver: MediaResolver | None = None):
        """Initialize the codec.

        Args:
            resolver: Live object registry used to decode symbolic references.
                Without one, only static and fallback references decode.
        """
        self.resolver = resolver

    def encode(self, kind: str | MediaKind | None, source: Any) -> str | None:
        """Derive a symbolic reference for a live media source.

        Args:
            kind: Reference kind (item, skill, currency, mastery, mark, static).
            source: For static media, the file path string. Otherwise an
                object exposing an ``id`` attribute (or the id itself).

        Returns:
            ``"<kind>:<id>"`` or None when no symbolic form is derivable.
        """
        if source is None or not kind:
            return None
        kind_value = kind.value if isinstance(kind, MediaKind) else str(kind)
        if kind_value not in MediaKind.values():
            logger.debug(f"No symbolic form for media kind: {kind_value}")
            return None

        if kind_value == MediaKind.STATIC.value:
            return f"{kind_value}{MEDIA_REF_SEPARATOR}{source}" if source else None

        object_id = source if isinstance(source, str) else getattr(source, "id", None)
        if not object_id:
            return None
        return f"{kind_value}{MEDIA_REF_SEPARATOR}{object_id}"

    def derive(self, media: str | None) -> str | None:
        """Try to recover a symbolic reference from a bare media pointer.

        Static asset paths map directly. Other pointers need a resolver that
        offers ``find_reference(media)``; without one nothing is derivable.

        Args:
            media: Renderable media pointer.

        Returns:
            Symbolic reference, or None.
        """
        if not media:
            return None
        if media.startswith(STATIC_MEDIA_PATH_PREFIX):
            return self.encode(MediaKind.STATIC, media[len(STATIC_MEDIA_PATH_PREFIX) :])

        find_reference = getattr(self.resolver, "find_reference", None)
        if find_reference is None:
            return None
        try:
            found = find_reference(media)
        except Exception as e:
            logger.warning(f"Reverse media lookup failed for {media!r}: {e}")
            return None
        if not found:
            return None
        kind, object_id = found
        return self.encode(kind, object_id)

    @staticmethod
    def is_fallback(media_ref: str | None) -> bool:
        """Check whether a reference is a raw fallback URL rather than symbolic."""
        return media_ref is not None and media_ref.startswith(FALLBACK_MEDIA_PREFIX)

    @staticmethod
    def encode_fallback(url: str) -> str:
        """Store a raw URL as a fallback reference, shortening the CDN host."""
        if url.startswith(MAIN_CDN_URL_PREFIX):
            url = MAIN_CDN_TOKEN + url[len(MAIN_CDN_URL_PREFIX) :]
        return f"{FALLBACK_MEDIA_PREFIX}{url}"

    def decode(self, media_ref: str | None) -> str:
        """Resolve a reference back to a renderable media pointer.

        Args:
            media_ref: Symbolic or fallback reference.

        Returns:
            Media pointer, or "" when the reference cannot be resolved.
        """
        if not media_ref:
            return ""

        if self.is_fallback(media_ref):
            url = media_ref[len(FALLBACK_MEDIA_PREFIX) :]
            if url.startswith(MAIN_CDN_TOKEN):
                return MAIN_CDN_URL_PREFIX + url[len(MAIN_CDN_TOKEN) :]
            return url

        # Only the kind is split off; the id may itself contain separators
        kind, separator, object_id = media_ref.partition(MEDIA_REF_SEPARATOR)
        if not separator or not object_id:
            logger.warning(f"Malformed media reference: {media_ref!r}")
            return ""

        if kind == MediaKind.STATIC.value:
            return f"{STATIC_MEDIA_PATH_PREFIX}{object_id}"

        if kind not in MediaKind.values():
            logger.warning(f"Unknown media reference kind: {kind}")
            return ""

        if self.resolver is None:
            logger.warning(f"No media resolver available for reference: {media_ref}")
            return ""

        try:
            media = self.resolver.resolve(kind, object_id)
        except Exception as e:
            logger.error(f"Failed to resolve media reference {media_ref!r}: {e}")
            return ""

        if not media:
            logger.warning(f"Unresolved media reference: {media_ref}")
            return ""
        return media
