"""Upload reading and thumbnail rendering helpers."""

from __future__ import annotations

from io import BytesIO

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_CONTENT_TYPE = "image/jpeg"
THUMBNAIL_SIZE = (200, 200)
THUMBNAIL_JPEG_QUALITY = 90
IMAGE_CONTENT_TYPE_PREFIX = "image/"
READ_CHUNK_SIZE = 1024 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured byte limit."""


def is_image_content_type(content_type: str | None) -> bool:
    return bool(content_type) and content_type.lower().startswith(IMAGE_CONTENT_TYPE_PREFIX)


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload fully, failing as soon as it grows past ``max_bytes``."""
    buffer = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")
    return bytes(buffer)


def render_thumbnail(data: bytes) -> bytes:
    """Cover-resize and center-crop image bytes to a square JPEG thumbnail."""
    try:
        with Image.open(BytesIO(data)) as image:
            image = ImageOps.exif_transpose(image)
            if image.mode != "RGB":
                image = image.convert("RGB")
            thumbnail = ImageOps.fit(
                image,
                THUMBNAIL_SIZE,
                method=Image.Resampling.LANCZOS,
                centering=(0.5, 0.5),
            )
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Unsupported or corrupt image") from exc

    output = BytesIO()
    thumbnail.save(output, format="JPEG", quality=THUMBNAIL_JPEG_QUALITY)
    return output.getvalue()
