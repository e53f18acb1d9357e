# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
Environment variables use the upper-cased field name (CACHE_TTL_HOURS, ...).
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
    memory_cache_max_size: int = 1000
    memory_cache_eviction_fraction: float = 0.1
    similarity_threshold: float = 0.7
    similarity_candidate_limit: int = 20

    # === Cache maintenance ===
    cache_maintenance_enabled: bool = True
    cache_sweep_interval_s: float = 3600.0
    cache_preload_interval_s: float = 21600.0
    cache_preload_limit: int = 50
    cache_preload_min_access_count: int = 5

    # === Persistent store ===
    store_backend: Literal["json", "sqlite", "redis"] = "json"
    store_root: Path = Path("~/.roadmapcache/store")
    store_redis_url: str = ""

    # === Roadmap generation ===
    llm_provider: str = "google"
    llm_model: str = "gemini-1.5-pro"
    google_api_key: str = ""
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.7

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "cache_ttl_hours",
        "memory_cache_max_size",
        "similarity_candidate_limit",
        "cache_sweep_interval_s",
        "cache_preload_interval_s",
        "cache_preload_limit",
    )
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("memory_cache_eviction_fraction")
    @classmethod
    def validate_eviction_fraction(cls, v: float) -> float:  # noqa: N805
        if not 0 < v <= 1:
            raise ValueError("memory_cache_eviction_fraction must be in (0, 1]")
        return v

    @field_validator("similarity_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:  # noqa: N805
        if not 0 <= v < 1:
            raise ValueError("similarity_threshold must be in [0, 1)")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field rules."""
        errors: list[str] = []

        if self.cache_preload_interval_s < self.cache_sweep_interval_s:
            errors.append(
                "CACHE_PRELOAD_INTERVAL_S must be >= CACHE_SWEEP_INTERVAL_S"
            )

        if self.cache_preload_min_access_count < 0:
            errors.append("CACHE_PRELOAD_MIN_ACCESS_COUNT must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_ttl_hours)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
