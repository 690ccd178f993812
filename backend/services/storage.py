"""S3 object-store client utilities (MinIO SDK)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from functools import lru_cache
from io import BytesIO

from minio import Minio
from minio.deleteobjects import DeleteError, DeleteObject
from minio.error import S3Error

from core import settings

MAX_DELETE_BATCH_SIZE = 1000
MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached S3 client configured from settings."""
    return Minio(
        settings.s3_endpoint,
        access_key=settings.require("aws_access_key_id"),
        secret_key=settings.require("aws_secret_access_key"),
        secure=settings.s3_secure,
        region=settings.aws_region,
    )


def is_missing_object_error(error: BaseException) -> bool:
    return isinstance(error, S3Error) and error.code in MISSING_OBJECT_CODES


def build_public_url(object_key: str) -> str:
    """Return the public virtual-hosted URL for an object key."""
    return f"https://{settings.bucket}.s3.{settings.aws_region}.amazonaws.com/{object_key}"


def put_object_bytes(
    object_key: str,
    data: bytes,
    *,
    content_type: str,
    cache_control: str,
    client: Minio | None = None,
    bucket: str | None = None,
) -> None:
    client = client or get_minio_client()
    client.put_object(
        bucket or settings.bucket,
        object_key,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
        metadata={"Cache-Control": cache_control},
    )


def get_object_bytes(
    object_key: str,
    client: Minio | None = None,
    *,
    bucket: str | None = None,
) -> bytes:
    """Download a whole object into memory."""
    client = client or get_minio_client()
    response = client.get_object(bucket or settings.bucket, object_key)
    try:
        return response.read()
    finally:
        response.close()
        response.release_conn()


def delete_object(
    object_key: str,
    client: Minio | None = None,
    *,
    bucket: str | None = None,
) -> None:
    """Delete one object. Errors propagate; S3 itself ignores missing keys."""
    client = client or get_minio_client()
    client.remove_object(bucket or settings.bucket, object_key)


def iter_object_keys(prefix: str, client: Minio | None = None) -> Iterator[str]:
    """Yield every key under ``prefix``, following continuation pages lazily."""
    client = client or get_minio_client()
    for item in client.list_objects(settings.bucket, prefix=prefix, recursive=True):
        if item.object_name and not item.is_dir:
            yield item.object_name


def delete_objects_batch(
    object_keys: Iterable[str],
    client: Minio | None = None,
) -> list[DeleteError]:
    """Issue one bulk delete for at most ``MAX_DELETE_BATCH_SIZE`` keys."""
    keys = list(object_keys)
    if len(keys) > MAX_DELETE_BATCH_SIZE:
        raise ValueError(f"Bulk delete accepts at most {MAX_DELETE_BATCH_SIZE} keys")
    if not keys:
        return []

    client = client or get_minio_client()
    # remove_objects is lazy; the request is sent while iterating its result.
    return list(
        client.remove_objects(settings.bucket, [DeleteObject(key) for key in keys])
    )
