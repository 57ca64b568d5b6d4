# backend/facilityhub/core/config.py
import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_BACKEND_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Persistence
    database_url: str = Field(
        default="sqlite+pysqlite:///./facilityhub.db",
        description="SQLAlchemy database URL",
    )
    auto_create_schema: bool = Field(
        default=False,
        description="Create tables on startup (local development only; use alembic elsewhere)",
    )

    # Facility mutex
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for cross-process facility locks (process-local locks when unset)",
    )
    lock_namespace: str = Field(default="facilityhub", description="Prefix for Redis lock keys")
    facility_lock_ttl_seconds: int = Field(
        default=30,
        ge=1,
        description="Expiry of a held facility lock, guards against crashed holders",
    )
    facility_lock_wait_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long a writer waits for a busy facility before giving up",
    )

    # Suggested dates
    suggestion_window_days: int = Field(default=30, ge=1, le=365)
    max_suggested_dates: int = Field(default=5, ge=1, le=50)

    # Inventory
    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Items with quantity strictly below this are reported as low stock",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized


settings = Settings()
