"""Generate thumbnails from bucket notifications on a MinIO deployment.

Local stand-in for the serverless trigger: subscribes to object-created
events under ``avatars/`` and feeds each event to the thumbnail generator.

Usage:
    uv run python scripts/listen_avatar_uploads.py
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import configure_logging, settings  # noqa: E402
from services.avatar_keys import AVATAR_PREFIX  # noqa: E402
from services.storage import get_minio_client  # noqa: E402
from services.thumbnails import process_notification  # noqa: E402

OBJECT_CREATED_EVENTS = ("s3:ObjectCreated:*",)
logger = logging.getLogger("scripts.listen_avatar_uploads")


def run() -> None:
    configure_logging()
    client = get_minio_client()
    logger.info(
        "Listening for avatar uploads",
        extra={"bucket": settings.bucket, "prefix": AVATAR_PREFIX},
    )
    with client.listen_bucket_notification(
        settings.bucket,
        prefix=AVATAR_PREFIX,
        events=OBJECT_CREATED_EVENTS,
    ) as events:
        for event in events:
            result = asyncio.run(process_notification(event, client=client))
            print(
                "Processed notification: "
                f"processed={result.processed} skipped={result.skipped} failed={result.failed}"
            )


if __name__ == "__main__":
    try:
        run()
    except KeyboardInterrupt:
        pass
