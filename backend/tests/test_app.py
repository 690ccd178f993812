"""Tests for application wiring and configuration."""

from __future__ import annotations

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from core import ErrorKind, ServiceError, render_error
from core.config import Settings, settings


@pytest.mark.asyncio
async def test_health_endpoint(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_unknown_route_renders_error_field(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/does-not-exist")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "error" in response.json()


@pytest.mark.parametrize(
    ("kind", "expected_status"),
    [
        (ErrorKind.UNAUTHORIZED, 401),
        (ErrorKind.FORBIDDEN, 403),
        (ErrorKind.BAD_REQUEST, 400),
        (ErrorKind.CONFIGURATION, 500),
        (ErrorKind.UPSTREAM, 500),
        (ErrorKind.RATE_LIMITED, 429),
    ],
)
def test_render_error_uses_kind_status(kind: ErrorKind, expected_status: int) -> None:
    response = render_error(kind, "message")

    assert response.status_code == expected_status
    assert response.body == b'{"error":"message"}'


def test_require_reports_missing_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "auth_url", "  ")

    with pytest.raises(ServiceError) as exc_info:
        settings.require("auth_url")

    assert exc_info.value.kind is ErrorKind.CONFIGURATION
    assert exc_info.value.detail == "Missing required setting AUTH_URL"


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("S3_BUCKET_NAME", "env-bucket")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AVATAR_MAX_BYTES", "1024")

    loaded = Settings(_env_file=None)

    assert loaded.bucket == "env-bucket"
    assert loaded.aws_region == "us-east-1"
    assert loaded.avatar_max_bytes == 1024


def test_settings_default_avatar_limit_is_five_mib(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AVATAR_MAX_BYTES", raising=False)

    assert Settings(_env_file=None).avatar_max_bytes == 5 * 1024 * 1024


@pytest.mark.asyncio
async def test_missing_auth_configuration_is_server_error(
    app,
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    from api.deps import get_auth_client

    app.dependency_overrides.pop(get_auth_client)
    monkeypatch.setattr(settings, "auth_url", "")

    response = await async_client.post(
        "/api/delete-avatar",
        json={"url": "https://bucket/avatars/u1/1.jpg"},
        headers={"Authorization": "Bearer token"},
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Server configuration error"}


@pytest.mark.asyncio
async def test_unexpected_error_renders_json_body(app, auth_client) -> None:
    from api.deps import get_storage_client_factory

    def malformed_endpoint_factory():
        raise ValueError("invalid endpoint")

    auth_client.register("token", "u1")
    app.dependency_overrides[get_storage_client_factory] = lambda: malformed_endpoint_factory

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post(
            "/api/delete-avatar",
            json={"url": "https://bucket/avatars/u1/1.jpg"},
            headers={"Authorization": "Bearer token"},
        )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error"}
