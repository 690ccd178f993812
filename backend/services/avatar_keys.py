"""Object key layout for avatar originals and thumbnails."""

from __future__ import annotations

import mimetypes
import time
from dataclasses import dataclass
from urllib.parse import unquote, urlparse
from uuid import uuid4

AVATARS_SEGMENT = "avatars"
THUMBNAILS_SEGMENT = "thumbnails"
AVATAR_PREFIX = f"{AVATARS_SEGMENT}/"
THUMBNAIL_PREFIX = f"{THUMBNAILS_SEGMENT}/"
FALLBACK_EXTENSION = "img"


class InvalidAvatarUrlError(ValueError):
    """Raised when a URL does not point at an avatar object."""


@dataclass(frozen=True)
class AvatarKeys:
    original_key: str
    thumbnail_key: str
    is_thumbnail: bool

    def is_owned_by(self, user_id: str) -> bool:
        return bool(user_id) and self.original_key.startswith(user_avatar_prefix(user_id))


def user_avatar_prefix(user_id: str) -> str:
    return f"{AVATAR_PREFIX}{user_id}/"


def user_thumbnail_prefix(user_id: str) -> str:
    return f"{THUMBNAIL_PREFIX}{user_avatar_prefix(user_id)}"


def is_thumbnail_key(object_key: str) -> bool:
    return object_key.startswith(THUMBNAIL_PREFIX)


def thumbnail_key_for(original_key: str) -> str:
    return f"{THUMBNAIL_PREFIX}{original_key}"


def original_key_for(thumbnail_key: str) -> str:
    if is_thumbnail_key(thumbnail_key):
        return thumbnail_key[len(THUMBNAIL_PREFIX):]
    return thumbnail_key


def file_extension(filename: str | None, content_type: str | None) -> str:
    """Return the client's filename suffix as-is, or one guessed from the MIME type."""
    name = (filename or "").rsplit("/", 1)[-1]
    stem, dot, suffix = name.rpartition(".")
    if dot and suffix and stem:
        return suffix

    guessed = mimetypes.guess_extension(content_type or "") if content_type else None
    if guessed:
        return guessed.lstrip(".")
    return FALLBACK_EXTENSION


def generate_avatar_key(
    user_id: str,
    *,
    filename: str | None,
    content_type: str | None,
    now_millis: int | None = None,
) -> str:
    """Build ``avatars/<user>/<millis>-<random>.<ext>`` for a new upload."""
    millis = now_millis if now_millis is not None else time.time_ns() // 1_000_000
    extension = file_extension(filename, content_type)
    return f"{user_avatar_prefix(user_id)}{millis}-{uuid4().hex[:12]}.{extension}"


def _is_unsafe_segment(segment: str) -> bool:
    return segment in {"", ".", ".."} or "/" in segment or "\\" in segment


def resolve_avatar_url(url: str) -> AvatarKeys:
    """Classify an avatar URL and derive both the original and thumbnail keys."""
    normalized_url = url.strip()
    if not normalized_url:
        raise InvalidAvatarUrlError("Invalid URL format")

    path = urlparse(normalized_url).path if "://" in normalized_url else normalized_url
    segments = [unquote(segment) for segment in path.split("/")]
    try:
        avatars_index = segments.index(AVATARS_SEGMENT)
    except ValueError as exc:
        raise InvalidAvatarUrlError("Invalid URL format") from exc

    key_segments = segments[avatars_index:]
    # avatars/<user>/<filename> at minimum, with no empty or relative parts.
    # Separators smuggled in as %2F or %5C would hide traversal inside one segment.
    if len(key_segments) < 3 or any(_is_unsafe_segment(part) for part in key_segments):
        raise InvalidAvatarUrlError("Invalid URL format")

    original_key = "/".join(key_segments)

    is_thumbnail = avatars_index > 0 and segments[avatars_index - 1] == THUMBNAILS_SEGMENT
    return AvatarKeys(
        original_key=original_key,
        thumbnail_key=thumbnail_key_for(original_key),
        is_thumbnail=is_thumbnail,
    )
