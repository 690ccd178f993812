"""Avatar upload and deletion endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from minio import Minio
from pydantic import BaseModel

from api.deps import get_current_identity, get_storage_client
from core import ErrorKind, ServiceError, settings
from services import (
    InvalidAvatarUrlError,
    UploadTooLargeError,
    build_public_url,
    delete_object,
    generate_avatar_key,
    is_image_content_type,
    is_missing_object_error,
    put_object_bytes,
    read_upload_file,
    resolve_avatar_url,
)
from services.auth import AuthenticatedUser

router = APIRouter(tags=["avatars"])
logger = logging.getLogger(__name__)

AVATAR_CACHE_CONTROL = "max-age=3600"


class UploadAvatarResponse(BaseModel):
    success: bool = True
    url: str
    key: str


class DeleteAvatarRequest(BaseModel):
    url: str | None = None


class DeleteAvatarResponse(BaseModel):
    success: bool = True


@router.post("/upload-avatar", response_model=UploadAvatarResponse)
async def upload_avatar(
    file: UploadFile | None = File(default=None),
    identity: AuthenticatedUser = Depends(get_current_identity),
    client: Minio = Depends(get_storage_client),
) -> UploadAvatarResponse:
    """Store a new avatar original; thumbnails are produced asynchronously."""
    if file is None:
        raise ServiceError(ErrorKind.BAD_REQUEST, "No file provided")

    try:
        data = await read_upload_file(file, settings.avatar_max_bytes)
    except UploadTooLargeError as exc:
        raise ServiceError(ErrorKind.BAD_REQUEST, str(exc)) from exc

    content_type = file.content_type
    if not is_image_content_type(content_type):
        raise ServiceError(
            ErrorKind.BAD_REQUEST,
            "Invalid file type. Only images are allowed.",
        )

    object_key = generate_avatar_key(
        identity.id,
        filename=file.filename,
        content_type=content_type,
    )
    try:
        await asyncio.to_thread(
            put_object_bytes,
            object_key,
            data,
            content_type=content_type,
            cache_control=AVATAR_CACHE_CONTROL,
            client=client,
        )
    except ServiceError:
        raise
    except Exception as exc:
        logger.error(
            "Avatar upload failed",
            extra={"object_key": object_key},
            exc_info=exc,
        )
        raise ServiceError(ErrorKind.UPSTREAM, "Failed to upload avatar", detail=str(exc)) from exc

    return UploadAvatarResponse(url=build_public_url(object_key), key=object_key)


async def _delete_thumbnail(object_key: str, client: Minio) -> None:
    try:
        await asyncio.to_thread(delete_object, object_key, client)
    except Exception as exc:
        logger.error("Error deleting thumbnail", extra={"object_key": object_key}, exc_info=exc)
    else:
        logger.info("Deleted thumbnail", extra={"object_key": object_key})


async def _delete_original(object_key: str, client: Minio) -> None:
    try:
        await asyncio.to_thread(delete_object, object_key, client)
    except Exception as exc:
        # Some S3-compatible stores report NoSuchKey once the generator removed it.
        if is_missing_object_error(exc):
            logger.info("Original image already removed", extra={"object_key": object_key})
        else:
            logger.warning(
                "Error deleting original image",
                extra={"object_key": object_key},
                exc_info=exc,
            )
    else:
        logger.info("Deleted original image", extra={"object_key": object_key})


@router.post("/delete-avatar", response_model=DeleteAvatarResponse)
async def delete_avatar(
    payload: DeleteAvatarRequest,
    identity: AuthenticatedUser = Depends(get_current_identity),
    client: Minio = Depends(get_storage_client),
) -> DeleteAvatarResponse:
    if not payload.url:
        raise ServiceError(ErrorKind.BAD_REQUEST, "No URL provided")

    try:
        keys = resolve_avatar_url(payload.url)
    except InvalidAvatarUrlError as exc:
        raise ServiceError(ErrorKind.BAD_REQUEST, str(exc)) from exc

    if not keys.is_owned_by(identity.id):
        raise ServiceError(ErrorKind.FORBIDDEN, "You can only delete your own avatar")

    await asyncio.gather(
        _delete_thumbnail(keys.thumbnail_key, client),
        _delete_original(keys.original_key, client),
    )
    return DeleteAvatarResponse()
