"""Configuration management for the inventory reservation engine."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Storage Configuration
    storage_backend: Literal["redis", "memory"] = Field(
        default="redis", description="Backend holding inventory records"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    redis_key_prefix: str = Field(default="inventory", description="Redis key namespace")
    max_conflict_retries: int = Field(
        default=5, ge=1, description="Retries when a record changed underneath a write"
    )

    # Catalog Service
    catalog_url: str | None = Field(default=None, description="Catalog service base URL")
    catalog_service_key: str | None = Field(
        default=None, description="Service key sent to the catalog service"
    )
    request_timeout: int = Field(default=30, description="Request timeout in seconds")

    # Inventory Settings
    default_reservation_minutes: int = Field(
        default=30, ge=1, description="Reservation TTL when callers omit one"
    )
    default_low_stock_threshold: int = Field(
        default=5, ge=0, description="Low stock alert threshold for new records"
    )
    movements_preview_limit: int = Field(
        default=10, description="Movements shown in the product inventory view"
    )

    # Scheduler Settings
    scheduler_enabled: bool = Field(default=True, description="Run periodic tasks")
    sweep_interval_seconds: float = Field(
        default=600, gt=0, description="Expired reservation cleanup interval"
    )
    sync_interval_seconds: float = Field(
        default=3600, gt=0, description="Catalog stock sync interval"
    )
    init_delay_seconds: float = Field(
        default=5, ge=0, description="Delay before initializing missing records"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @property
    def scheduler_active(self) -> bool:
        """Periodic tasks never run in the test environment."""
        return self.scheduler_enabled and self.environment != "test"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
