import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    Local development reads `backend/.env` for convenience. Under pytest or in
    CI the file is skipped so that tests see only the variables they set.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'test', 'staging', or 'production'",
    )

    DATABASE_URL: str = "sqlite:///./data/forum.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(
        default=7,
        description="Lifetime of session tokens in days",
    )
    COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = Field(
        default=False,
        description="Send the session cookie over HTTPS only",
    )
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Optional admin account seeded by init_db.py
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_NAME: str = "Administrator"

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true, call Base.metadata.create_all on startup",
    )

    # Performance settings
    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Rate limits (slowapi syntax) for the credential endpoints
    RATE_LIMIT_LOGIN: str = "10/minute"
    RATE_LIMIT_REGISTER: str = "5/minute"

    # Membership rules
    BRONZE_POST_LIMIT: int = Field(
        default=5,
        description="Maximum active posts for users without gold membership",
    )
    GOLD_MEMBERSHIP_DAYS: int = Field(
        default=365,
        description="Length of a gold membership period in days",
    )

    # Listing defaults
    POSTS_PAGE_SIZE: int = 5
    RECENT_PROFILE_POSTS: int = 3

    # Search bookkeeping
    POPULAR_SEARCH_LIMIT: int = 3
    POPULAR_SEARCH_WINDOW_DAYS: int = 30
    POPULAR_SEARCH_MIN_COUNT: int = 2
    SEARCH_RETENTION_DAYS: int = Field(
        default=90,
        description="Searches not repeated within this many days are purged",
    )
    SEARCH_RETENTION_KEEP_COUNT: int = Field(
        default=5,
        description="Searches with at least this many hits survive the purge",
    )

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    MAINTENANCE_HOUR: int = Field(
        default=2,
        ge=0,
        le=23,
        description="Hour of day (server time) for the nightly maintenance job",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def scheduler_active(self) -> bool:
        return self.SCHEDULER_ENABLED and self.ENVIRONMENT != "test"

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError when SECRET_KEY is missing.
settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Get the settings instance (for dependency injection)."""
    return settings
