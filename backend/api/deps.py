"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Callable

from fastapi import Depends, Header
from minio import Minio

from core import ErrorKind, ServiceError
from services import get_minio_client
from services.auth import (
    AuthenticatedUser,
    AuthServiceClient,
    build_auth_client,
    build_http_client,
    extract_bearer_token,
)

StorageClientFactory = Callable[[], Minio]


def get_storage_client_factory() -> StorageClientFactory:
    return get_minio_client


def get_storage_client(
    factory: StorageClientFactory = Depends(get_storage_client_factory),
) -> Minio:
    return factory()


async def get_auth_client() -> AsyncIterator[AuthServiceClient]:
    """Yield an auth client whose HTTP connection lives for one request."""
    async with build_http_client() as http_client:
        yield build_auth_client(http_client)


def require_bearer_token(authorization: str | None = Header(default=None)) -> str:
    token = extract_bearer_token(authorization)
    if token is None:
        raise ServiceError(ErrorKind.UNAUTHORIZED, "Unauthorized")
    return token


async def get_current_identity(
    token: str = Depends(require_bearer_token),
    auth_client: AuthServiceClient = Depends(get_auth_client),
) -> AuthenticatedUser:
    return await auth_client.get_user(token)
