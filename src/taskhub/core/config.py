"""Configuration management for taskhub.

Settings come from environment variables with the ``TASKHUB_`` prefix, with
``.env`` file support for local development.
"""

from __future__ import annotations

import logging
import re
import warnings

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskhub.utils.db_compat import detect_dialect, is_sync_url
from taskhub.utils.validation import validate_url


class Settings(BaseSettings):
    """Main configuration for taskhub.

    Example:
        ```python
        # TASKHUB_DATABASE_URL=postgresql+asyncpg://...
        # TASKHUB_JWT_SECRET=...
        settings = Settings()

        # Or programmatically
        settings = Settings(
            database_url="sqlite+aiosqlite:///:memory:",
            jwt_secret="x" * 32,
            bcrypt_rounds=4,
        )
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __str__(self) -> str:
        """String representation with masked secrets."""
        result = super().__repr__()
        result = re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", result)
        result = re.sub(
            r"(jwt_secret|secret|password)=(?:'[^']*'|[^\s,)]+)",
            r"\1='***'",
            result,
            flags=re.IGNORECASE,
        )
        return result

    ##########################
    # Database Configuration #
    ##########################

    database_url: str = Field(
        ...,
        description="Primary database connection URL (required)",
    )

    database_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Database connection pool size",
    )

    database_max_overflow: int = Field(
        default=20,
        ge=0,
        le=200,
        description="Max overflow connections beyond pool size",
    )

    database_echo: bool = Field(
        default=False,
        description="Enable SQL query logging (use only in development)",
    )

    ###########################
    # Sessions & Credentials  #
    ###########################

    jwt_secret: str = Field(
        ...,
        description="Secret key used to sign session tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )

    token_ttl_days: int = Field(
        default=7,
        ge=1,
        description="Session token lifetime in days",
    )

    invite_ttl_days: int = Field(
        default=7,
        ge=1,
        description="Invite token lifetime in days",
    )

    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt work factor",
    )

    ################
    # HTTP Surface #
    ################

    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Base URL used to build invite links",
    )

    api_prefix: str = Field(
        default="/api",
        description="Path prefix for every API route",
    )

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed by the CORS middleware",
    )

    ###########################
    # Background & Operations #
    ###########################

    sweeper_enabled: bool = Field(
        default=True,
        description="Run the task expiration sweeper in the application lifespan",
    )

    sweep_interval_seconds: float = Field(
        default=3600,
        gt=0,
        description="Seconds between expiration sweeps",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    ##############
    # Validators #
    ##############

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Normalise the URL and warn about synchronous driver schemes."""
        url_str = str(v).rstrip("/")
        detect_dialect(url_str)
        if is_sync_url(url_str):
            warnings.warn(
                "Database URL uses a synchronous driver scheme. "
                "Use an async driver instead (e.g. postgresql+asyncpg, "
                "sqlite+aiosqlite).",
                stacklevel=4,
            )
        return url_str

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("jwt_secret must be at least 32 characters long")
        return v

    @field_validator("frontend_url")
    @classmethod
    def validate_frontend_url(cls, v: str) -> str:
        if not validate_url(v):
            raise ValueError("frontend_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError("api_prefix must start with '/'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    ##################
    # Helper Methods #
    ##################

    def invite_url(self, token: str) -> str:
        """Return the frontend link a new member follows to accept an invite."""
        return f"{self.frontend_url}/join?token={token}"


__all__ = ["Settings"]
