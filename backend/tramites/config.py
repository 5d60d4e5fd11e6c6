"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - gateway_success_probability is within [0, 1]

Design Decisions:
    - Defaults provided for every setting: the in-memory backend works with no .env at all
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = (
        "postgresql+asyncpg://tramites:tramites@db:5432/tramites"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_schema: bool = False

    # Payments
    gateway_success_probability: float = Field(0.9, ge=0.0, le=1.0)
    gateway_latency_ms: int = Field(0, ge=0)
    retry_base_delay_ms: int = 30_000
    retry_max_delay_ms: int = 3_600_000
    receipt_prefix: str = "COMP"

    # Procedures
    file_number_prefix: str = "EXP"

    # Caller deadline applied when an operation gets no explicit timeout
    operation_timeout_seconds: float | None = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
