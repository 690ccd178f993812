"""Typed error kinds and the single rendering step for error responses."""

from __future__ import annotations

from enum import Enum

from fastapi import status
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    RATE_LIMITED = "rate_limited"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UPSTREAM: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


class ServiceError(Exception):
    """A failure that maps onto one HTTP response.

    ``message`` is shown to the user; ``detail`` is kept for logs only.
    """

    def __init__(self, kind: ErrorKind, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail

    @property
    def status_code(self) -> int:
        return self.kind.status_code


def render_error(kind: ErrorKind, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=kind.status_code)


__all__ = ["ErrorKind", "ServiceError", "render_error"]
