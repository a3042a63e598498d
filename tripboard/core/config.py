"""Application configuration using Pydantic Settings"""

import logging
from datetime import time
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent.parent.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(..., description="PostgreSQL database URL")
    db_min_size: int = Field(default=1, ge=0, description="Minimum pooled connections")
    db_max_size: int = Field(default=10, ge=1, description="Maximum pooled connections")
    db_ssl: str | None = Field(default=None, description="asyncpg ssl mode, e.g. 'require'")
    db_connect_retries: int = Field(default=3, ge=1, description="Pool connect attempts")
    run_migrations: bool = Field(default=True, description="Apply pending migrations on startup")

    # Calendar
    timezone: str = Field(default="Asia/Taipei", description="IANA zone that defines 'today'")

    # Live counters
    warm_days_ahead: int = Field(
        default=0, ge=0, description="Extra days after today kept in the snapshot cache"
    )
    snapshot_enabled_only: bool = Field(
        default=True, description="Only list enabled counters to live clients"
    )
    counter_min_value: int = Field(default=0, ge=0, description="Lowest value a counter may reach")
    counter_saturation: Literal["block", "clamp"] = Field(
        default="block", description="Reject or silently ignore updates past a limit"
    )
    gate_enabled_on_startup: bool = Field(
        default=True, description="Serve live clients as soon as the process starts"
    )

    # Provisioning
    provision_days_ahead: int = Field(default=10, ge=1, description="Days of counters to pre-create")
    retention_days: int = Field(default=7, ge=0, description="Days of past counters to keep")
    provision_at: time = Field(default=time(0, 5), description="Local time of the daily run")

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    exit_on_unhandled_error: bool = Field(
        default=False, description="Shut down when a background task fails unexpectedly"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    frontend_url: str = Field(default="http://localhost:3000", description="Frontend URL for CORS")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL is a PostgreSQL DSN"""
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError("DATABASE_URL must start with 'postgresql://'")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the zone id resolves"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS allowed origins"""
        return [self.frontend_url]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
