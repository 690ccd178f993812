"""Account closure endpoint."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from api.deps import (
    StorageClientFactory,
    get_auth_client,
    get_current_identity,
    get_storage_client_factory,
)
from core import ErrorKind, ServiceError
from services import purge_user_storage
from services.auth import AuthenticatedUser, AuthServiceClient

router = APIRouter(tags=["account"])
logger = logging.getLogger(__name__)


class DeleteAccountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")


class DeleteAccountResponse(BaseModel):
    message: str


def _purge_storage(user_id: str, client_factory: StorageClientFactory) -> None:
    purge_user_storage(user_id, client_factory())


@router.post("/delete-account", response_model=DeleteAccountResponse)
async def delete_account(
    payload: DeleteAccountRequest,
    identity: AuthenticatedUser = Depends(get_current_identity),
    auth_client: AuthServiceClient = Depends(get_auth_client),
    storage_client_factory: StorageClientFactory = Depends(get_storage_client_factory),
) -> DeleteAccountResponse:
    """Delete the caller's stored avatars, then their identity.

    The storage purge is best effort; the identity deletion decides the
    response.
    """
    requested_user_id = (payload.user_id or "").strip()
    if not requested_user_id:
        raise ServiceError(ErrorKind.BAD_REQUEST, "User ID is required")
    if requested_user_id != identity.id:
        raise ServiceError(ErrorKind.FORBIDDEN, "Invalid request")

    try:
        await asyncio.to_thread(_purge_storage, identity.id, storage_client_factory)
    except Exception as exc:
        logger.error(
            "Account storage purge failed; continuing with identity deletion",
            extra={"user_id": identity.id},
            exc_info=exc,
        )

    await auth_client.delete_user(identity.id)
    logger.info("Deleted account", extra={"user_id": identity.id})
    return DeleteAccountResponse(message="Account deleted successfully")
