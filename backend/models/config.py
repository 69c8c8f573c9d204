import os
import sys
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so `SECRET_KEY` can be
    provided from `backend/.env`. **SECRET_KEY remains required** and must be
    set in production via environment variables.

    Do NOT auto-load `.env` when running under pytest or in CI.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class RateLimits(BaseModel):
    """slowapi limit strings per endpoint family."""

    interaction: str = "30/minute"
    comment: str = "10/minute"
    follow: str = "10/minute"
    content: str = "5/minute"
    auth: str = "5/minute"

    model_config = ConfigDict(frozen=True)


class ContentLimits(BaseModel):
    """
    Validation thresholds handed to the comment and content services.

    Built from Settings once; services take it as an explicit argument so
    tests can pass tighter limits without touching the environment.
    """

    max_comment_length: int = 2000
    max_comment_links: int = 3
    max_nesting_depth: int = 5
    rate_limits: RateLimits = RateLimits()

    model_config = ConfigDict(frozen=True)


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    DATABASE_URL: str = "sqlite:///./data/uniclub.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

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

    # Safety: avoid creating DB schema automatically unless explicitly enabled.
    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Content validation
    MAX_COMMENT_LENGTH: int = Field(
        default=2000,
        description="Maximum number of characters in a comment",
    )
    MAX_COMMENT_LINKS: int = Field(
        default=3,
        description="Maximum number of links in a comment",
    )
    MAX_NESTING_DEPTH: int = Field(
        default=5,
        description="Deepest reply level allowed below a top-level comment",
    )
    COMMENT_PAGE_SIZE: int = Field(
        default=20,
        description="Default number of comments per page",
    )

    # Rate limiting (slowapi limit strings)
    RATE_LIMIT_ENABLED: bool = Field(
        default=True,
        description="Disable to turn every slowapi limit into a no-op",
    )
    RATE_LIMIT_INTERACTION: str = Field(
        default="30/minute",
        description="Likes, saves, shares and views per client",
    )
    RATE_LIMIT_COMMENT: str = Field(
        default="10/minute",
        description="Comment creations per client",
    )
    RATE_LIMIT_FOLLOW: str = Field(
        default="10/minute",
        description="Follow/unfollow/block actions per client",
    )
    RATE_LIMIT_CONTENT: str = Field(
        default="5/minute",
        description="Content creations per client",
    )
    RATE_LIMIT_AUTH: str = Field(
        default="5/minute",
        description="Register/login attempts per client",
    )

    # Error tracking
    SENTRY_DSN: Optional[str] = Field(
        default=None,
        description="Sentry DSN; error tracking is off when unset",
    )
    SENTRY_RELEASE: str = Field(
        default="unknown",
        description="Release tag attached to Sentry events",
    )

    # Counter reconciliation
    RECONCILIATION_ENABLED: bool = Field(
        default=True,
        description="Run the periodic counter reconciliation job",
    )
    RECONCILIATION_INTERVAL_MINUTES: int = Field(
        default=10,
        description="Minutes between reconciliation passes",
    )
    RECONCILIATION_BATCH_SIZE: int = Field(
        default=500,
        description="Outbox events consumed per reconciliation pass",
    )

    @property
    def content_limits(self) -> ContentLimits:
        """Validation thresholds as an explicit struct."""
        return ContentLimits(
            max_comment_length=self.MAX_COMMENT_LENGTH,
            max_comment_links=self.MAX_COMMENT_LINKS,
            max_nesting_depth=self.MAX_NESTING_DEPTH,
            rate_limits=RateLimits(
                interaction=self.RATE_LIMIT_INTERACTION,
                comment=self.RATE_LIMIT_COMMENT,
                follow=self.RATE_LIMIT_FOLLOW,
                content=self.RATE_LIMIT_CONTENT,
                auth=self.RATE_LIMIT_AUTH,
            ),
        )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiating Settings() raises pydantic.ValidationError if SECRET_KEY isn't set.
settings = Settings()  # type: ignore[call-arg]
