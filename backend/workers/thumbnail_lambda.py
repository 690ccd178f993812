"""Serverless entry point for object-created notifications on ``avatars/``."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from core import configure_logging
from services.thumbnails import process_notification

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: Any = None) -> dict[str, int]:
    """Generate thumbnails for every record in ``event``.

    Never raises: per-record failures are logged and counted so the trigger
    does not retry the whole batch.
    """
    configure_logging()
    record_count = len(event.get("Records") or [])
    logger.info("Received object-created event", extra={"record_count": record_count})
    try:
        result = asyncio.run(process_notification(event))
    except Exception as exc:
        logger.error("Thumbnail batch aborted", exc_info=exc)
        return {"processed": 0, "skipped": 0, "failed": record_count}
    return result.as_dict()
