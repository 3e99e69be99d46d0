"""Configuration management for AuthGate.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OAuthClientConfig(BaseModel):
    """A registered OAuth client as declared in configuration.

    An empty ``client_secret`` declares a public client (PKCE only).
    """

    id: str
    name: str
    client_secret: str = ""
    redirect_uris: list[str] = Field(default_factory=list)
    allowed_origin: str
    scopes: str = "openid profile email"
    is_active: bool = True


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTHGATE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "AuthGate"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api"
    external_url: str = "http://localhost:3000"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./ag_data/authgate.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Security Settings
    secret_key: str = Field(
        default="change-me-in-production-use-openssl-rand-hex-32",
        description="Secret key for session token signing",
    )
    session_cookie_name: str = "authgate.session-token"
    session_max_age_days: int = 30

    # OAuth Settings
    authorization_code_expire_minutes: int = 10
    access_token_expire_seconds: int = 3600
    refresh_token_expire_days: int = 30
    default_scope: str = "openid profile email"
    oauth_cors_origin: str = "*"
    oauth_clients: list[OAuthClientConfig] = Field(
        default=[
            OAuthClientConfig(
                id="local-client",
                name="Local Client",
                redirect_uris=["https://localhost:3001/callback"],
                allowed_origin="https://localhost:3001",
            )
        ]
    )

    # Email MFA Settings
    mfa_code_expire_minutes: int = 10
    email_code_store: Literal["database", "memory"] = "database"

    # Email Change Settings
    email_change_request_expire_hours: int = 24
    email_change_code_expire_minutes: int = 10
    email_change_max_attempts: int = 5
    email_change_rate_limit_requests: int = 3
    email_change_rate_limit_hours: int = 1

    # Email Delivery Settings
    email_provider: Literal["console", "smtp", "resend", "sendgrid"] = "console"
    email_from: str = "no-reply@authgate.local"
    email_from_name: str = "AuthGate"
    email_reply_to: str | None = None
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    resend_api_key: str = ""
    sendgrid_api_key: str = ""

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("external_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the external URL so paths can be appended directly."""
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse to sign sessions with the placeholder key in production."""
        if self.is_production and self.secret_key.startswith("change-me"):
            raise ValueError("AUTHGATE_SECRET_KEY must be set in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
