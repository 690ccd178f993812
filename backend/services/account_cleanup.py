"""Storage purge for closed accounts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from itertools import chain, islice

from minio import Minio

from .avatar_keys import user_avatar_prefix, user_thumbnail_prefix
from .storage import MAX_DELETE_BATCH_SIZE, delete_objects_batch, iter_object_keys

logger = logging.getLogger(__name__)


@dataclass
class PurgeSummary:
    deleted: int = 0
    batches: int = 0
    failed_keys: list[str] = field(default_factory=list)


def chunked(items: Iterable[str], size: int) -> Iterator[list[str]]:
    if size <= 0:
        raise ValueError("size must be positive")
    iterator = iter(items)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def iter_user_object_keys(user_id: str, client: Minio | None = None) -> Iterator[str]:
    """Yield every original and thumbnail key stored for ``user_id``."""
    return chain(
        iter_object_keys(user_avatar_prefix(user_id), client=client),
        iter_object_keys(user_thumbnail_prefix(user_id), client=client),
    )


def purge_user_storage(
    user_id: str,
    client: Minio | None = None,
    *,
    batch_size: int = MAX_DELETE_BATCH_SIZE,
) -> PurgeSummary:
    """Delete every stored object for a user, one bulk request per batch.

    Keys are deleted as they are listed, so at most one batch is held in
    memory. Listing or request errors propagate to the caller.
    """
    if not user_id:
        raise ValueError("user_id must not be empty")

    summary = PurgeSummary()
    for batch in chunked(iter_user_object_keys(user_id, client=client), batch_size):
        errors = delete_objects_batch(batch, client=client)
        summary.batches += 1
        failed = [error.name for error in errors]
        summary.failed_keys.extend(failed)
        summary.deleted += len(batch) - len(failed)
        for error in errors:
            logger.warning(
                "Failed to delete object during account purge",
                extra={"object_key": error.name, "error_code": error.code},
            )

    logger.info(
        "Purged account storage",
        extra={"user_id": user_id, "deleted": summary.deleted, "batches": summary.batches},
    )
    return summary
