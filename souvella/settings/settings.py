"""Application settings and configuration."""

import enum
from typing import Any, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL


def _strip_inline_comment(value: Any) -> Any:
    """Strip inline # comment from env value (e.g. hosted app settings copied from .env)."""
    if isinstance(value, str) and "#" in value:
        return value.split("#")[0].strip()
    return value


class Environment(str, enum.Enum):
    """Environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, enum.Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, enum.Enum):
    """Document store implementations."""

    MEMORY = "memory"
    SQL = "sql"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SOUVELLA_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)

    # Application
    app_name: str = Field(default="Souvella")
    app_version: str = Field(default="0.1.0")
    api_prefix: str = Field(default="/api/v1")
    docs_url: Optional[str] = Field(default="/docs")
    redoc_url: Optional[str] = Field(default="/redoc")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    reload: bool = Field(default=False)

    # CORS
    cors_origins: str = Field(default="*", description="Comma-separated list of allowed origins")
    cors_allow_credentials: bool = Field(default=False)

    # Document store
    store_backend: StoreBackend = Field(default=StoreBackend.MEMORY)

    # Database (store_backend=sql)
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_user: str = Field(default="souvella")
    db_pass: str = Field(default="souvella")
    db_base: str = Field(default="souvella")
    db_echo: bool = Field(default=False)
    db_url: Optional[str] = Field(default=None)
    db_pool_size: int = Field(default=10)
    db_max_overflow: int = Field(default=20)

    # Memory gems
    day_timezone: str = Field(
        default="UTC",
        description="IANA zone in which calendar days (today, reaction quota, freshness) are evaluated",
    )
    daily_selection_count: int = Field(default=4, ge=0, description="Memories surfaced per relationship per day")
    max_daily_reactions: int = Field(default=2, ge=0, description="Thumbs up a user can give per day")
    daily_upload_limit: int = Field(
        default=0,
        ge=0,
        description="Memories a user may post per relationship per day, 0 disables the limit",
    )
    selection_seed: Optional[int] = Field(
        default=None,
        description="Seed for the daily selection sampler, for reproducible environments",
    )

    @property
    def db_url_property(self) -> URL:
        """Build database URL from components."""
        if self.db_url:
            return URL(self.db_url)

        db_name = self.db_base
        if self.environment == Environment.TESTING and self.db_base == "souvella":
            db_name = "souvella_test"

        return URL.build(
            scheme="postgresql+asyncpg",
            host=self.db_host,
            port=self.db_port,
            user=self.db_user,
            password=self.db_pass,
            path=f"/{db_name}",
        )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse cors_origins into a list."""
        if not self.cors_origins or self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="before")
    @classmethod
    def strip_inline_comments_from_env(cls, data: Any) -> Any:
        """Strip inline # comments from all string values."""
        if isinstance(data, dict):
            return {k: _strip_inline_comment(v) if isinstance(v, str) else v for k, v in data.items()}
        return data

    @field_validator("day_timezone")
    @classmethod
    def validate_day_timezone(cls, v: str) -> str:
        """Reject zone names zoneinfo cannot resolve."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone for day_timezone: {v}") from exc
        return v


# Global settings instance
settings = Settings()
