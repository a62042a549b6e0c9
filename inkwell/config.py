"""Application settings."""

from __future__ import annotations

import json
from functools import cached_property
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES: list[dict[str, str]] = [
    {"name": "Technology", "description": "Latest technology trends and news"},
    {"name": "Programming", "description": "Programming tutorials and tips"},
    {"name": "Web Development", "description": "Web development guides and resources"},
    {"name": "Lifestyle", "description": "Lifestyle and personal development"},
    {"name": "Tutorial", "description": "Step-by-step tutorials"},
]


class Settings(BaseSettings):
    """Central configuration entrypoint for the blog API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True

    # Server
    base_url: str = "http://127.0.0.1:8000"
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Observability
    log_level: str = "INFO"
    metrics_username: str = "prometheus"
    metrics_password: str | None = None

    # Database
    database_url: str = Field(
        default="sqlite:///./data/inkwell.db",
        validation_alias=AliasChoices("DATABASE_URL"),
    )
    async_database_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ASYNC_DATABASE_URL"),
    )
    db_echo: bool = Field(
        default=False,
        validation_alias=AliasChoices("DB_ECHO", "SQL_ECHO"),
    )

    # Security
    secret_key: str = Field(
        default="dev-secret",
        validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"),
    )
    jwt_lifetime_seconds: int = 24 * 60 * 60
    admin_email: str = "admin@example.com"
    admin_name: str = "Admin"
    admin_password: str = "change-me-now"

    # Rate limiting (per client address)
    api_rate_limit: str = "100 per 15 minutes"
    auth_rate_limit: str = "5 per 15 minutes"

    # Email
    email_enabled: bool = True
    email_from_name: str = "Inkwell"
    email_from_addr: str = "newsletter@example.com"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_ssl: bool = False
    smtp_starttls: bool = True
    notify_send_interval: float = 0.1

    # Image storage
    storage_backend: Literal["local", "s3"] = "local"
    upload_dir: str = "data/uploads"
    s3_bucket: str | None = None
    cdn_base_url: str | None = None
    aws_region: str = "us-east-1"
    max_upload_size: int = 5 * 1024 * 1024
    allowed_image_extensions: list[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp"]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize ALLOWED_ORIGINS env input into a list."""
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in raw.split(",") if item.strip()]
        return []

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        return self.allowed_origins

    @cached_property
    def resolved_database_url(self) -> str:
        """Return the primary sync SQLAlchemy URL."""
        return self.database_url

    @cached_property
    def resolved_async_database_url(self) -> str:
        """Return the async SQLAlchemy URL derived from the sync configuration."""
        if self.async_database_url:
            return self.async_database_url
        base_url = self.resolved_database_url
        if base_url.startswith("sqlite:///"):
            return base_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        if base_url.startswith("postgresql://"):
            return base_url.replace("postgresql://", "postgresql+asyncpg://")
        return base_url


settings = Settings()
