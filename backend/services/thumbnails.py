"""Thumbnail generation for freshly uploaded avatar originals.

Each object-created notification is handled on its own: the original is
downloaded, rendered to a square JPEG under the mirrored ``thumbnails/`` key
and only then removed. One failing record never affects its siblings, and a
batch run never raises.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import unquote_plus

from minio import Minio

from .avatar_keys import is_thumbnail_key, thumbnail_key_for
from .images import JPEG_CONTENT_TYPE, render_thumbnail
from .storage import delete_object, get_object_bytes, put_object_bytes

logger = logging.getLogger(__name__)

THUMBNAIL_CACHE_CONTROL = "max-age=31536000"


class RecordOutcome(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ThumbnailBatchResult:
    processed: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"processed": self.processed, "skipped": self.skipped, "failed": self.failed}


@dataclass(frozen=True)
class ObjectRef:
    """An object key plus the bucket named by its notification, if any."""

    key: str
    bucket: str | None = None


def extract_object_refs(event: Mapping[str, Any]) -> list[ObjectRef]:
    """Return the bucket and decoded key of every record in an S3 notification."""
    refs: list[ObjectRef] = []
    for record in event.get("Records") or []:
        try:
            s3_entity = record["s3"]
            raw_key = s3_entity["object"]["key"]
            bucket_name = (s3_entity.get("bucket") or {}).get("name") or None
        except (AttributeError, KeyError, TypeError):
            logger.warning("Skipping malformed notification record", extra={"record": record})
            continue
        refs.append(ObjectRef(key=unquote_plus(raw_key), bucket=bucket_name))
    return refs


def generate_thumbnail(
    object_key: str,
    client: Minio | None = None,
    *,
    bucket: str | None = None,
) -> RecordOutcome:
    """Render the thumbnail for one original and remove the original afterwards.

    ``bucket`` defaults to the configured bucket when the caller has none.
    """
    if is_thumbnail_key(object_key):
        logger.info("Skipping thumbnail object", extra={"object_key": object_key})
        return RecordOutcome.SKIPPED

    source_bytes = get_object_bytes(object_key, client=client, bucket=bucket)
    thumbnail_bytes = render_thumbnail(source_bytes)
    thumbnail_key = thumbnail_key_for(object_key)
    put_object_bytes(
        thumbnail_key,
        thumbnail_bytes,
        content_type=JPEG_CONTENT_TYPE,
        cache_control=THUMBNAIL_CACHE_CONTROL,
        client=client,
        bucket=bucket,
    )
    logger.info("Created thumbnail", extra={"thumbnail_key": thumbnail_key, "bucket": bucket})

    try:
        delete_object(object_key, client=client, bucket=bucket)
    except Exception as exc:
        # The thumbnail is already durable; a leftover original only costs space.
        logger.error(
            "Failed to delete source image after thumbnail creation",
            extra={"object_key": object_key, "bucket": bucket},
            exc_info=exc,
        )
    else:
        logger.info("Deleted source image", extra={"object_key": object_key})
    return RecordOutcome.PROCESSED


async def _process_ref(ref: ObjectRef, client: Minio | None) -> RecordOutcome:
    try:
        return await asyncio.to_thread(generate_thumbnail, ref.key, client, bucket=ref.bucket)
    except Exception as exc:
        logger.error(
            "Failed to process image",
            extra={"object_key": ref.key, "bucket": ref.bucket},
            exc_info=exc,
        )
        return RecordOutcome.FAILED


async def process_object_keys(
    object_keys: Iterable[str | ObjectRef],
    client: Minio | None = None,
) -> ThumbnailBatchResult:
    """Process bare keys (configured bucket) or event refs concurrently."""
    refs = [key if isinstance(key, ObjectRef) else ObjectRef(key=key) for key in object_keys]
    outcomes = await asyncio.gather(
        *(_process_ref(ref, client) for ref in refs),
        return_exceptions=True,
    )

    counts = {outcome: 0 for outcome in RecordOutcome}
    for ref, outcome in zip(refs, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Unexpected failure for record", extra={"object_key": ref.key}, exc_info=outcome)
            outcome = RecordOutcome.FAILED
        counts[outcome] += 1

    result = ThumbnailBatchResult(
        processed=counts[RecordOutcome.PROCESSED],
        skipped=counts[RecordOutcome.SKIPPED],
        failed=counts[RecordOutcome.FAILED],
    )
    logger.info("Thumbnail batch completed", extra=result.as_dict())
    return result


async def process_notification(
    event: Mapping[str, Any],
    client: Minio | None = None,
) -> ThumbnailBatchResult:
    return await process_object_keys(extract_object_refs(event), client=client)
