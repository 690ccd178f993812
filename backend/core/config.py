"""Application settings loaded from the environment."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ErrorKind, ServiceError

BASE_DIR = Path(__file__).resolve().parents[1]
ENV_FILE = BASE_DIR / ".env"
FIVE_MIB = 5 * 1024 * 1024


class Settings(BaseSettings):
    app_env: str = Field("local", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Object storage
    aws_region: str = Field("ap-northeast-1", alias="AWS_REGION")
    s3_bucket_name: str = Field("", alias="S3_BUCKET_NAME")
    aws_access_key_id: str = Field("", alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field("", alias="AWS_SECRET_ACCESS_KEY")
    s3_endpoint: str = Field("s3.amazonaws.com", alias="S3_ENDPOINT")
    s3_secure: bool = Field(True, alias="S3_SECURE")

    # Hosted authentication service
    auth_url: str = Field("", alias="AUTH_URL")
    auth_anon_key: str = Field("", alias="AUTH_ANON_KEY")
    auth_service_role_key: str = Field("", alias="AUTH_SERVICE_ROLE_KEY")
    auth_timeout_seconds: float = Field(10.0, alias="AUTH_TIMEOUT_SECONDS")

    avatar_max_bytes: int = Field(FIVE_MIB, alias="AVATAR_MAX_BYTES")

    redis_url: str = Field("redis://localhost:6379/0", alias="REDIS_URL")
    rate_limit_requests: int = Field(60, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: int = Field(60, alias="RATE_LIMIT_WINDOW_SECONDS")

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def require(self, field_name: str) -> str:
        """Return a non-empty string setting or fail with a configuration error."""
        value = getattr(self, field_name)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            alias = type(self).model_fields[field_name].alias or field_name.upper()
            raise ServiceError(
                ErrorKind.CONFIGURATION,
                "Server configuration error",
                detail=f"Missing required setting {alias}",
            )
        return value

    @property
    def bucket(self) -> str:
        return self.require("s3_bucket_name")


settings = Settings()
