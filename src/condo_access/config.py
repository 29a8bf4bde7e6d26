"""Runtime settings for the condo-access service and its CLI.

Values come from the process environment (or ``.env``); names match the
field names case-insensitively, e.g. ``JWT_SECRET`` or ``TENANT_HEADER``.
"""

import logging
from enum import StrEnum
from functools import lru_cache

from pydantic import SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Environment-driven settings.

    Secrets (database password, JWT signing key) are ``SecretStr`` so a
    logged or printed ``Settings`` never shows them. The Postgres fields
    use the same names as the official Docker image variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "DEBUG"

    postgres_user: str = "condo_access"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "condo_access"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    # Without a signing key every bearer token is unverifiable.
    jwt_secret: SecretStr | None = None
    jwt_algorithm: str = "HS256"
    allow_dev_identity_header: bool = False

    tenant_header: str = "X-Condominium-Id"

    device_session_ttl_seconds: int = 3600
    session_cleanup_interval_seconds: int = 300

    # Browser clients send the tenant header on every call.
    cors_allowed_origins: list[str] = []
    cors_allow_credentials: bool = False
    cors_allowed_methods: list[str] = ["GET", "POST", "PATCH"]
    cors_allowed_headers: list[str] = [
        "Content-Type",
        "Authorization",
        "X-Condominium-Id",
    ]

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("jwt_secret", mode="before")
    @classmethod
    def _blank_secret_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """psycopg v3 URL; the same string serves sync and async engines."""
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def dev_identity_enabled(self) -> bool:
        """``X-User-Id`` is accepted only when asked for and not in production."""
        return self.allow_dev_identity_header and not self.is_prod


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide ``Settings``; also usable as a FastAPI dependency."""
    return Settings()


settings = get_settings()
