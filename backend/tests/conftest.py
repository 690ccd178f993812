"""Pytest fixtures for the avatar lifecycle backend."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from io import BytesIO

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from PIL import Image

from api.deps import get_auth_client, get_storage_client_factory
from app import create_app
from core import ErrorKind, ServiceError
from core.config import settings
from services import RateLimiter, set_rate_limiter
from services import storage
from services.auth import AuthenticatedUser

TEST_BUCKET = "test-bucket"
TEST_REGION = "ap-northeast-1"


class FakeS3Error(Exception):
    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


@dataclass
class FakeDeleteError:
    name: str
    code: str = "AccessDenied"
    message: str = "Access Denied"


@dataclass
class StoredObject:
    data: bytes
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class FakeListedObject:
    object_name: str
    is_dir: bool = False


class _FakeResponse:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.closed = False
        self.released = False

    def read(self) -> bytes:
        return self._data

    def close(self) -> None:
        self.closed = True

    def release_conn(self) -> None:
        self.released = True


class FakeObjectStore:
    """In-memory stand-in for the subset of the Minio client the app uses.

    ``calls`` records ``(operation, key)`` in invocation order. ``failures``
    maps ``(operation, key)`` to an exception raised instead of the call.
    """

    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.bulk_delete_calls: list[list[str]] = []
        self.bulk_delete_errors: dict[str, FakeDeleteError] = {}
        self.list_error: Exception | None = None
        self.bulk_delete_error: Exception | None = None
        self.buckets: list[str] = []

    def seed(self, key: str, data: bytes = b"seed", content_type: str = "image/png") -> None:
        self.objects[key] = StoredObject(data=data, content_type=content_type)

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        failure = self.failures.get((operation, key))
        if failure is not None:
            raise failure

    def operations(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]

    def put_object(self, bucket_name, object_name, data, length, content_type=None, metadata=None):
        self.buckets.append(bucket_name)
        self._check("put", object_name)
        payload = data.read()
        assert len(payload) == length
        self.objects[object_name] = StoredObject(
            data=payload,
            content_type=content_type,
            metadata=dict(metadata or {}),
        )

    def get_object(self, bucket_name, object_name):
        self.buckets.append(bucket_name)
        self._check("get", object_name)
        stored = self.objects.get(object_name)
        if stored is None:
            raise FakeS3Error("NoSuchKey")
        return _FakeResponse(stored.data)

    def remove_object(self, bucket_name, object_name):
        # S3 DeleteObject succeeds for absent keys.
        self.buckets.append(bucket_name)
        self._check("delete", object_name)
        self.objects.pop(object_name, None)

    def list_objects(self, bucket_name, prefix=None, recursive=False):
        self.buckets.append(bucket_name)
        self.calls.append(("list", prefix or ""))
        if self.list_error is not None:
            raise self.list_error
        for key in sorted(self.objects):
            if key.startswith(prefix or ""):
                yield FakeListedObject(object_name=key)

    def remove_objects(self, bucket_name, delete_object_list):
        self.buckets.append(bucket_name)
        names = [
            getattr(item, "name", None) or getattr(item, "_name")
            for item in delete_object_list
        ]
        self.bulk_delete_calls.append(names)
        if self.bulk_delete_error is not None:
            raise self.bulk_delete_error
        for name in names:
            self.calls.append(("bulk_delete", name))
            error = self.bulk_delete_errors.get(name)
            if error is not None:
                yield error
                continue
            self.objects.pop(name, None)


class StubAuthClient:
    def __init__(self) -> None:
        self.users: dict[str, AuthenticatedUser] = {}
        self.get_user_calls: list[str] = []
        self.deleted_user_ids: list[str] = []
        self.delete_error: ServiceError | None = None

    def register(self, token: str, user_id: str) -> AuthenticatedUser:
        user = AuthenticatedUser(id=user_id, email=f"{user_id}@example.com")
        self.users[token] = user
        return user

    async def get_user(self, access_token: str) -> AuthenticatedUser:
        self.get_user_calls.append(access_token)
        user = self.users.get(access_token)
        if user is None:
            raise ServiceError(ErrorKind.UNAUTHORIZED, "Unauthorized")
        return user

    async def delete_user(self, user_id: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted_user_ids.append(user_id)


def make_image_bytes(size: tuple[int, int] = (1200, 800), fmt: str = "PNG") -> bytes:
    image = Image.new("RGB", size, color=(0, 200, 100))
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _storage_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(settings, "s3_bucket_name", TEST_BUCKET)
    monkeypatch.setattr(settings, "aws_region", TEST_REGION)
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)
    yield


@pytest.fixture()
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture()
def auth_client() -> StubAuthClient:
    return StubAuthClient()


@pytest.fixture()
def app(object_store: FakeObjectStore, auth_client: StubAuthClient) -> Iterator[FastAPI]:
    """Create the FastAPI app with fake storage and auth dependencies."""
    application = create_app()

    async def override_get_auth_client() -> AsyncIterator[StubAuthClient]:
        yield auth_client

    application.dependency_overrides[get_storage_client_factory] = lambda: lambda: object_store
    application.dependency_overrides[get_auth_client] = override_get_auth_client
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


class _InMemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        value = self.data.get(key, 0) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl: int) -> None:  # pragma: no cover - noop
        return None


@pytest.fixture(autouse=True)
def _rate_limiter_stub() -> Iterator[None]:
    limiter = RateLimiter(_InMemoryRedis(), limit=1_000, window_seconds=60)
    set_rate_limiter(limiter)
    yield
    set_rate_limiter(None)
