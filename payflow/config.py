"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - All delays are milliseconds; all probabilities are in [0, 1]

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults reproduce the simulated timings of the payment pipeline, so the
      service works out-of-the-box without a .env file
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Local resource store
    database_url: str = "sqlite+aiosqlite:///./resource_cache.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but the async engine needs +asyncpg."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Validation stage
    validation_delay_ms: int = Field(100, ge=0)
    assume_online: bool = True
    connectivity_probe_url: str | None = None
    connectivity_timeout_seconds: float = 2.0

    # Processing stage
    processing_delay_ms: int = Field(2000, ge=0)
    processing_deadline_ms: int = Field(3000, ge=0)

    # Post-task stage
    notify_customer_delay_ms: int = Field(500, ge=0)
    update_inventory_delay_ms: int = Field(300, ge=0)
    log_transaction_delay_ms: int = Field(400, ge=0)
    notify_warehouse_delay_ms: int = Field(600, ge=0)
    notify_customer_success_rate: float = Field(0.9, ge=0.0, le=1.0)
    notify_warehouse_success_rate: float = Field(0.8, ge=0.0, le=1.0)

    # Resource cache
    cache_version: str = "payment-pwa-v1"
    cache_manifest: list[str] = [
        "./", "./index.html", "./css/style.css", "./js/app.js",
    ]
    origin_url: str = "http://localhost:8080"
    origin_timeout_seconds: float = 10.0
    cache_install_retry_seconds: float = Field(30.0, gt=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
