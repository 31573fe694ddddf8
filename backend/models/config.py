import json
import os
import sys
from dataclasses import dataclass
from typing import Annotated, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    Local development loads `backend/.env` automatically so `SECRET_KEY` and the
    admin bootstrap credentials can live there. **SECRET_KEY remains required**
    and must be set through the environment in production.

    `.env` is never loaded under pytest or in CI, so tests that exercise
    missing secrets keep failing fast.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


@dataclass(frozen=True)
class ModerationThresholds:
    """Strike counts that trigger each escalation step."""

    warning_threshold: int
    temp_ban_threshold: int
    perma_ban_threshold: int
    temp_ban_durations: tuple[int, ...]
    strike_expiration_days: Optional[int] = None

    def __post_init__(self) -> None:
        if not (
            self.warning_threshold
            <= self.temp_ban_threshold
            <= self.perma_ban_threshold
        ):
            raise ValueError(
                "Moderation thresholds must satisfy warning <= temp_ban <= perma_ban"
            )
        if not self.temp_ban_durations:
            raise ValueError("At least one temporary ban duration is required")
        if any(days <= 0 for days in self.temp_ban_durations):
            raise ValueError("Temporary ban durations must be positive")


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    DATABASE_URL: str = "sqlite:///./data/readtrack.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Initial admin account, created by init_db.py
    ADMIN_EMAIL: str = Field(
        ...,
        description="Admin email - must be set via ADMIN_EMAIL environment variable",
    )
    ADMIN_PASSWORD: str = Field(
        ...,
        description="Admin password - must be set via ADMIN_PASSWORD environment variable",
    )

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(default=5, description="Persistent connections in pool")
    DB_MAX_OVERFLOW: int = Field(
        default=10, description="Extra connections when pool exhausted"
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30, description="Seconds to wait for connection from pool"
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800, description="Recycle connections after N seconds"
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    LOG_DIR: str = Field(default="logs", description="Directory for rotating log files")

    # Maintenance scheduler
    SCHEDULER_ENABLED: bool = Field(
        default=False,
        description="Run expired-ban and expired-strike maintenance in-process",
    )
    EXPIRED_BANS_INTERVAL_MINUTES: int = Field(
        default=30,
        description="Minutes between sweeps lifting lapsed temporary bans",
    )
    STRIKE_CLEANUP_HOUR_UTC: int = Field(
        default=3,
        ge=0,
        le=23,
        description="Hour (UTC) of the daily expired strike cleanup",
    )

    # Moderation: strike escalation
    MODERATION_WARNING_THRESHOLD: int = Field(
        default=1,
        ge=0,
        description="Active strikes before a user receives a warning",
    )
    MODERATION_TEMP_BAN_THRESHOLD: int = Field(
        default=3,
        ge=0,
        description="Active strikes before a user receives a temporary ban",
    )
    MODERATION_PERMA_BAN_THRESHOLD: int = Field(
        default=5,
        ge=0,
        description="Active strikes before a user is permanently banned",
    )
    MODERATION_TEMP_BAN_DURATIONS: Annotated[List[int], NoDecode] = Field(
        default=[1, 3, 7, 14, 30],
        description="Escalating temporary ban durations in days",
    )
    MODERATION_STRIKE_EXPIRATION_DAYS: Optional[int] = Field(
        default=90,
        description="Days before a strike expires; unset for never-expiring strikes",
    )

    # Reading progress
    TRACKING_CHAPTER_ZERO_IS_UNSET: bool = Field(
        default=True,
        description="Store chapter 0 as 'no chapter recorded' instead of a prologue read",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("MODERATION_TEMP_BAN_DURATIONS", mode="before")
    @classmethod
    def parse_ban_durations(cls, v: str | List[int]) -> List[int]:
        """Accept a JSON list or a comma-separated string of days."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [int(days) for days in v.split(",") if days.strip()]
        return v

    @field_validator("MODERATION_STRIKE_EXPIRATION_DAYS", mode="before")
    @classmethod
    def parse_strike_expiration(cls, v: str | int | None) -> int | None:
        if isinstance(v, str) and v.strip().lower() in ("", "none", "null", "never"):
            return None
        return v  # type: ignore[return-value]

    @model_validator(mode="after")
    def check_moderation_thresholds(self) -> "Settings":
        """Fail at startup rather than on the first strike."""
        self.moderation_thresholds()
        return self

    def moderation_thresholds(self) -> ModerationThresholds:
        """Build the escalation thresholds from the current settings."""
        return ModerationThresholds(
            warning_threshold=self.MODERATION_WARNING_THRESHOLD,
            temp_ban_threshold=self.MODERATION_TEMP_BAN_THRESHOLD,
            perma_ban_threshold=self.MODERATION_PERMA_BAN_THRESHOLD,
            temp_ban_durations=tuple(self.MODERATION_TEMP_BAN_DURATIONS),
            strike_expiration_days=self.MODERATION_STRIKE_EXPIRATION_DAYS,
        )

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError when SECRET_KEY is missing.
settings = Settings()  # type: ignore[call-arg]
