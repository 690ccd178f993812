"""Authentication service integration."""

from .bearer import extract_bearer_token
from .client import (
    AuthenticatedUser,
    AuthServiceClient,
    build_auth_client,
    build_http_client,
)

__all__ = [
    "AuthenticatedUser",
    "AuthServiceClient",
    "build_auth_client",
    "build_http_client",
    "extract_bearer_token",
]
