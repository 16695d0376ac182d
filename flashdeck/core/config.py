"""
Configuration module for the Flashdeck backend.

The Settings object centralizes environment-driven configuration with strict
typing and validation rules so that the rest of the codebase can rely on a
single source of truth.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Literal, cast

from pydantic import (
    AliasChoices,
    AnyHttpUrl,
    Field,
    SecretStr,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    project_name: str = Field(default="Flashdeck Backend", alias="PROJECT_NAME")
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        alias="APP_ENV",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api", alias="API_V1_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sql_echo: bool = Field(default=False, alias="SQL_ECHO")

    database_url: str = Field(alias="DATABASE_URL")
    db_pool_size: int = Field(
        default=3,
        alias="DB_POOL_SIZE",
        description="Connections kept in the pool (small hosted databases cap this low).",
        ge=1,
    )
    db_pool_timeout_seconds: int = Field(
        default=15,
        alias="DB_POOL_TIMEOUT_SECONDS",
        description="Seconds to wait for a pooled connection before failing.",
        ge=1,
    )
    db_max_retries: int = Field(
        default=2,
        alias="DB_MAX_RETRIES",
        description="Total attempts for a database operation hitting connectivity errors.",
        ge=1,
    )
    db_retry_base_delay_seconds: float = Field(
        default=1.0,
        alias="DB_RETRY_BASE_DELAY_SECONDS",
        description="Initial backoff delay, doubled after every failed attempt.",
        gt=0,
    )
    db_retry_max_delay_seconds: float = Field(
        default=5.0,
        alias="DB_RETRY_MAX_DELAY_SECONDS",
        description="Upper bound for the retry backoff delay.",
        gt=0,
    )
    db_keepalive_enabled: bool = Field(
        default=True,
        alias="DB_KEEPALIVE_ENABLED",
        description="Enable the background liveness ping against the database.",
    )
    db_keepalive_interval_seconds: int = Field(
        default=240,
        alias="DB_KEEPALIVE_INTERVAL_SECONDS",
        description="Interval between keep-alive pings in seconds.",
    )
    db_keepalive_idle_seconds: int = Field(
        default=60,
        alias="DB_KEEPALIVE_IDLE_SECONDS",
        description="Skip the ping when real traffic happened within this window.",
    )
    db_auto_create_schema: bool = Field(
        default=False,
        alias="DB_AUTO_CREATE_SCHEMA",
        description="Create missing tables on startup (local development).",
    )

    secret_key: SecretStr = Field(alias="SECRET_KEY")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        alias="JWT_ALGORITHM",
        validation_alias=AliasChoices("JWT_ALGORITHM", "ALGORITHM"),
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS", ge=4, le=31)

    production_app_origin: AnyHttpUrl | None = Field(
        default=None,
        alias="PRODUCTION_APP_ORIGIN",
    )
    raw_backend_cors_origins: str | None = Field(
        default=None,
        alias="BACKEND_CORS_ORIGINS",
        description="Comma-separated list or JSON array of localhost origins (http://localhost:PORT).",
    )
    max_request_bytes: int = Field(
        default=1_048_576,
        alias="MAX_REQUEST_BYTES",
        description="Upper bound for request bodies in bytes (default 1 MiB).",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def _strip_string(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be provided.")
        trimmed = value.strip()
        if not trimmed:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return trimmed

    @field_validator("access_token_expire_minutes")
    @classmethod
    def _validate_token_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("ACCESS_TOKEN_EXPIRE_MINUTES must be a positive integer.")
        return value

    @field_validator("max_request_bytes")
    @classmethod
    def _validate_request_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAX_REQUEST_BYTES must be a positive integer.")
        return value

    @field_validator("db_keepalive_interval_seconds", "db_keepalive_idle_seconds")
    @classmethod
    def _validate_keepalive_seconds(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be positive.")
        return value

    @model_validator(mode="after")
    def _validate_keepalive_window(self) -> "Settings":
        if self.db_keepalive_idle_seconds >= self.db_keepalive_interval_seconds:
            raise ValueError(
                "DB_KEEPALIVE_IDLE_SECONDS must be smaller than DB_KEEPALIVE_INTERVAL_SECONDS."
            )
        if self.db_retry_base_delay_seconds > self.db_retry_max_delay_seconds:
            raise ValueError(
                "DB_RETRY_BASE_DELAY_SECONDS must not exceed DB_RETRY_MAX_DELAY_SECONDS."
            )
        return self

    @field_validator("secret_key", mode="after")
    @classmethod
    def _validate_secret(cls, secret: SecretStr, info: ValidationInfo) -> SecretStr:
        if not secret.get_secret_value().strip():
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return secret

    _LOCAL_CORS_ENVIRONMENTS = frozenset({"local", "test"})

    @computed_field(return_type=list[str])
    def backend_cors_origins(self) -> list[str]:
        """
        Return validated localhost origins for local/test development.

        Production/staging environments ignore BACKEND_CORS_ORIGINS entirely to
        avoid misconfiguration on deployed servers.
        """
        if self.environment not in self._LOCAL_CORS_ENVIRONMENTS:
            return []

        parsed = self.parse_cors_origins(self.raw_backend_cors_origins)
        return [self._validate_localhost_origin(origin) for origin in parsed]

    @staticmethod
    def parse_cors_origins(origins: str | list[str] | None) -> list[str]:
        """
        Normalize the BACKEND_CORS_ORIGINS value into a list of origins.

        Accepts either a comma-separated string, a JSON array string, or an
        explicit list of strings.
        """
        if origins is None:
            return []
        if isinstance(origins, list):
            cleaned: list[str] = []
            for origin in origins:
                if not isinstance(origin, str):
                    raise ValueError("CORS origin list entries must be strings.")
                stripped = origin.strip()
                if not stripped:
                    raise ValueError("CORS origin list entries must be non-empty strings.")
                cleaned.append(stripped.rstrip("/"))
            return cleaned
        if isinstance(origins, str):
            return Settings._parse_backend_cors_origins(origins)
        raise ValueError("CORS origins must be provided as a string or list of strings.")

    @staticmethod
    def _parse_backend_cors_origins(value: str | None) -> list[str]:
        if value is None:
            return []
        normalized = value.strip()
        if not normalized:
            return []
        if normalized.startswith("["):
            try:
                parsed = json.loads(normalized)
                if isinstance(parsed, list):
                    return [
                        str(origin).strip().rstrip("/") for origin in parsed if str(origin).strip()
                    ]
            except json.JSONDecodeError:
                pass
        return [origin.strip().rstrip("/") for origin in normalized.split(",") if origin.strip()]

    @property
    def cors_origins(self) -> list[str]:
        """Compile the effective list of CORS origins."""
        origins: set[str] = set()
        cors_base = cast(list[str], self.backend_cors_origins)
        origins.update({origin.rstrip("/") for origin in cors_base})

        if self.production_app_origin:
            origins.add(str(self.production_app_origin).rstrip("/"))

        return sorted(origins)

    @property
    def expose_error_details(self) -> bool:
        """Raw error detail is only rendered outside deployed environments."""
        return self.environment in self._LOCAL_CORS_ENVIRONMENTS

    @staticmethod
    def _validate_localhost_origin(origin: str) -> str:
        normalized = origin.strip().rstrip("/")
        if not normalized:
            raise ValueError("CORS origin entries must be non-empty strings.")
        if not normalized.startswith("http://localhost"):
            raise ValueError(
                "BACKEND_CORS_ORIGINS only accepts http://localhost:* origins and is honored "
                "only when APP_ENV is 'local' or 'test'. Configure PRODUCTION_APP_ORIGIN for "
                "deployed domains."
            )
        return normalized


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    # BaseSettings loads required values from env/.env during instantiation.
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
