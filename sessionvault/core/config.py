"""SessionVault Configuration - environment-driven settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionvault import __version__

# Symmetric algorithms the claim codec may be pinned to
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# Minimum length for JWT signing secrets
MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="SessionVault", description="Application name")
    app_version: str = Field(default=__version__, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode (dev logging, docs)")
    log_level: str = Field(default="INFO", description="Root log level")

    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")

    # Token signing - access and refresh secrets are independent
    jwt_access_secret_key: str = Field(..., description="Secret for signing access tokens")
    jwt_refresh_secret_key: str = Field(..., description="Secret for signing refresh tokens")
    jwt_algorithm: str = Field(default="HS256", description="HMAC algorithm for both token classes")
    jwt_access_token_expire_minutes: int = Field(
        default=15, ge=1, description="Access token lifetime in minutes"
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7, ge=1, description="Refresh token lifetime in days"
    )

    # Session store
    session_store_backend: Literal["redis", "memory"] = Field(
        default="redis", description="Where session records live"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_operation_timeout: float = Field(
        default=2.0, gt=0, description="Seconds to wait for a single Redis round-trip"
    )
    session_key_prefix: str = Field(default="session:", description="Prefix for session keys")

    # Static login credentials (stand-in for an external user directory)
    auth_username: str = Field(default="username", description="Login username")
    auth_password: str = Field(default="", description="Login password (empty disables login)")
    auth_user_id: int = Field(default=1, ge=0, description="User id issued for the static login")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        algorithm = v.upper()
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {', '.join(HMAC_ALGORITHMS)}; got {v}"
            )
        return algorithm

    @field_validator("jwt_access_secret_key", "jwt_refresh_secret_key")
    @classmethod
    def validate_secret_length(cls, v: str, info) -> str:
        if len(v) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"{info.field_name.upper()} must be at least {MIN_SECRET_LENGTH} characters. "
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        return v

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        if self.jwt_access_secret_key == self.jwt_refresh_secret_key:
            raise ValueError(
                "JWT_ACCESS_SECRET_KEY and JWT_REFRESH_SECRET_KEY must not share the same value"
            )
        return self

    def check_security_configuration(self) -> list[str]:
        """Return warnings for risky but non-fatal configuration."""
        warnings: list[str] = []

        if self.debug:
            warnings.append("Debug mode is enabled; API docs are exposed")

        if self.session_store_backend == "memory" and not self.debug:
            warnings.append(
                "In-memory session store is in use; sessions are lost on restart "
                "and not shared between workers"
            )

        if (
            self.session_store_backend == "redis"
            and self.redis_url.startswith("redis://")
            and "@" not in self.redis_url
        ):
            warnings.append("Redis connection has no password and no TLS (use rediss://)")

        if self.auth_password and len(self.auth_password) < 12:
            warnings.append("AUTH_PASSWORD is shorter than 12 characters")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings()
