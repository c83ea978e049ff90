# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for TTL, record store backend and logging settings.
Environment variable names are the upper-cased field names
(e.g. STORE_BACKEND, SUPABASE_SERVICE_ROLE_KEY).
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_ttl_hours: float = 24.0

    # === Record store ===
    store_backend: Literal["memory", "sqlite", "redis", "supabase"] = "memory"
    sqlite_path: Path = Path("~/.smartcache/smartcache.db")
    redis_url: str = ""
    redis_key_prefix: str = "smartcache:"
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_table: str = "product_cache"
    supabase_timeout_s: float = 30.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("cache_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:  # noqa: N805
        """CACHE_TTL_HOURS must be strictly positive."""
        if v <= 0:
            raise ValueError("cache_ttl_hours must be > 0")
        return v

    @field_validator("supabase_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("supabase_timeout_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate that the selected backend has its connection settings."""
        errors: list[str] = []

        if self.store_backend == "redis" and not self.redis_url:
            errors.append("STORE_BACKEND=redis requires REDIS_URL")

        if self.store_backend == "supabase":
            if not self.supabase_url:
                errors.append("STORE_BACKEND=supabase requires SUPABASE_URL")
            if not self.supabase_service_role_key:
                errors.append(
                    "STORE_BACKEND=supabase requires SUPABASE_SERVICE_ROLE_KEY"
                )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl(self) -> timedelta:
        """TTL as a timedelta."""
        return timedelta(hours=self.cache_ttl_hours)
