# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Application Settings

Configuration management using pydantic-settings.
Supports environment variables and .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Development-only signing secrets. Rejected when ENVIRONMENT=production.
DEV_ACCESS_TOKEN_SECRET = "dev-access-token-secret-change-me"
DEV_REFRESH_TOKEN_SECRET = "dev-refresh-token-secret-change-me"

_INSECURE_SECRETS = {
    DEV_ACCESS_TOKEN_SECRET,
    DEV_REFRESH_TOKEN_SECRET,
    "change_me_in_production",
    "change-me",
    "changeme",
    "secret",
    "jwt-secret",
    "jwt_secret",
    "your-secret-key",
    "password",
    "development",
}


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="postgresql+asyncpg://localhost:5432/numberchain",
        description="Async SQLAlchemy connection URL",
    )
    pool_size: int = Field(default=10, ge=1, le=100)
    max_overflow: int = Field(default=20, ge=0, le=100)
    echo: bool = Field(default=False, description="Echo SQL queries")
    create_tables: bool = Field(
        default=False, description="Create tables from ORM metadata on startup"
    )


class SecuritySettings(BaseSettings):
    """Token, password and CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    # JWT
    access_token_secret: str = Field(default=DEV_ACCESS_TOKEN_SECRET)
    refresh_token_secret: str = Field(default=DEV_REFRESH_TOKEN_SECRET)
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=15, ge=1)
    refresh_token_expire_days: int = Field(default=7, ge=1)

    # Passwords
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    @field_validator("access_token_secret", "refresh_token_secret")
    @classmethod
    def validate_secret_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Token secrets must not be empty")
        return v

    @property
    def access_token_max_age(self) -> int:
        """Access token lifetime in seconds."""
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_max_age(self) -> int:
        """Refresh token lifetime in seconds."""
        return self.refresh_token_expire_days * 24 * 60 * 60


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # json or human


class Settings(BaseSettings):
    """
    Main application settings.

    Usage:
        settings = get_settings()
        print(settings.database.url)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Number Chain")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")  # development, staging, production

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    workers: int = Field(default=1)

    # Routing
    api_prefix: str = Field(default="api")
    api_version: str = Field(default="v1")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_staging(self) -> bool:
        return self.environment == "staging"

    @property
    def api_base_path(self) -> str:
        """Mount point for all API routers, e.g. ``/api/v1``."""
        return f"/{self.api_prefix.strip('/')}/{self.api_version.strip('/')}"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Safety check: never sign production tokens with development secrets
        if self.is_production:
            for name in ("access_token_secret", "refresh_token_secret"):
                value = getattr(self.security, name)
                if value.lower() in _INSECURE_SECRETS:
                    raise ValueError(
                        f"SECURITY_{name.upper()} is set to an insecure default. "
                        'Generate one with: python -c "import secrets; '
                        'print(secrets.token_urlsafe(64))"'
                    )
                if len(value) < 32:
                    raise ValueError(
                        f"SECURITY_{name.upper()} must be at least 32 characters "
                        f"(got {len(value)})"
                    )
            if self.security.access_token_secret == self.security.refresh_token_secret:
                raise ValueError(
                    "Access and refresh tokens must be signed with different secrets"
                )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    """
    return Settings()


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "Settings",
    "DatabaseSettings",
    "SecuritySettings",
    "ObservabilitySettings",
    "get_settings",
]
