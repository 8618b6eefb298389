"""
Configuration and settings for the caucus site API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_ADMIN_PASSWORD_LENGTH = 8
MIN_JWT_SECRET_LENGTH = 32
SUPPORTED_DATABASE_SCHEMES = ("postgresql", "sqlite", "mysql")


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    log_level: Optional[str] = Field(default=None)

    # Admin authentication
    admin_password: Optional[str] = Field(default=None)
    jwt_secret: Optional[str] = Field(default=None)
    session_max_age_seconds: int = Field(default=24 * 60 * 60, ge=60)

    # Database (Postgres expected, SQLite works for local runs)
    database_url: Optional[str] = Field(default=None)
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "CAUCUS_USE_IN_MEMORY_BACKENDS", "USE_IN_MEMORY_BACKENDS"
        ),
    )

    # Rate limiting; Redis is optional, the default store is process memory.
    redis_url: Optional[str] = Field(default=None)
    redis_key_prefix: str = Field(default="caucus:ratelimit")
    # Only enable behind a reverse proxy that overwrites X-Forwarded-For.
    trust_proxy_headers: bool = Field(default=False)
    login_max_attempts: int = Field(default=5, ge=1)
    login_window_seconds: int = Field(default=15 * 60, ge=1)
    contact_max_submissions: int = Field(default=3, ge=1)
    contact_window_seconds: int = Field(default=15 * 60, ge=1)
    rate_limit_sweep_interval_seconds: float = Field(default=5 * 60, gt=0)

    # Calendar export
    site_name: str = Field(default="NH Emerging Technologies Caucus")
    site_domain: str = Field(default="emergingtechnh.org")

    # Server
    server_host: str = Field(default="127.0.0.1")
    server_port: int = Field(default=8000, ge=1, le=65535)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def login_window_ms(self) -> int:
        return self.login_window_seconds * 1000

    @property
    def contact_window_ms(self) -> int:
        return self.contact_window_seconds * 1000

    @property
    def session_max_age_ms(self) -> int:
        return self.session_max_age_seconds * 1000

    def configuration_errors(self) -> list[str]:
        """
        Return human readable problems with the loaded configuration.

        The service still starts with problems present; routes that need a
        missing value answer with a server configuration error instead.
        """
        errors: list[str] = []
        if not (self.admin_password or "").strip():
            errors.append("Missing required environment variable: ADMIN_PASSWORD")
        elif len(self.admin_password) < MIN_ADMIN_PASSWORD_LENGTH:
            errors.append(
                f"ADMIN_PASSWORD must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters long"
            )

        if not (self.jwt_secret or "").strip():
            errors.append("Missing required environment variable: JWT_SECRET")
        elif len(self.jwt_secret) < MIN_JWT_SECRET_LENGTH:
            errors.append(
                f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters long for security"
            )

        if self.database_url and not self.database_url.startswith(
            SUPPORTED_DATABASE_SCHEMES
        ):
            errors.append(
                "DATABASE_URL must be a SQLAlchemy URL (postgresql://, sqlite://, mysql://)"
            )
        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
