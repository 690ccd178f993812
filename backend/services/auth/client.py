"""Client for the hosted authentication service's REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from core import ErrorKind, ServiceError, settings

logger = logging.getLogger(__name__)

USER_PATH = "/auth/v1/user"
ADMIN_USERS_PATH = "/auth/v1/admin/users"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None


class AuthServiceClient:
    """Verifies bearer tokens and deletes identities.

    The wrapped ``httpx.AsyncClient`` is owned by the caller, which scopes it
    to one request or invocation.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        anon_key: str,
        service_role_key: str | None = None,
    ) -> None:
        self.http = http_client
        self.anon_key = anon_key
        self.service_role_key = service_role_key

    async def get_user(self, access_token: str) -> AuthenticatedUser:
        """Resolve an access token to its user or raise an unauthorized error."""
        try:
            response = await self.http.get(
                USER_PATH,
                headers={
                    "apikey": self.anon_key,
                    "Authorization": f"Bearer {access_token}",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth service unreachable during token verification", exc_info=exc)
            raise ServiceError(ErrorKind.UNAUTHORIZED, "Unauthorized") from exc

        if response.status_code != httpx.codes.OK:
            raise ServiceError(
                ErrorKind.UNAUTHORIZED,
                "Unauthorized",
                detail=f"auth service returned {response.status_code}",
            )

        payload = _json_object(response)
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id.strip():
            raise ServiceError(ErrorKind.UNAUTHORIZED, "Unauthorized")
        email = payload.get("email")
        return AuthenticatedUser(
            id=user_id.strip(),
            email=email if isinstance(email, str) else None,
        )

    async def delete_user(self, user_id: str) -> None:
        """Delete an identity with the service-role credential.

        Dependent database rows are removed by the database's cascade.
        """
        if not self.service_role_key:
            raise ServiceError(
                ErrorKind.CONFIGURATION,
                "Server configuration error",
                detail="Missing required setting AUTH_SERVICE_ROLE_KEY",
            )
        try:
            response = await self.http.delete(
                f"{ADMIN_USERS_PATH}/{user_id}",
                headers={
                    "apikey": self.service_role_key,
                    "Authorization": f"Bearer {self.service_role_key}",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ServiceError(
                ErrorKind.UPSTREAM,
                "Failed to delete account",
                detail=str(exc),
            ) from exc


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.require("auth_url").rstrip("/"),
        timeout=settings.auth_timeout_seconds,
    )


def build_auth_client(http_client: httpx.AsyncClient) -> AuthServiceClient:
    return AuthServiceClient(
        http_client,
        anon_key=settings.require("auth_anon_key"),
        service_role_key=settings.auth_service_role_key.strip() or None,
    )
