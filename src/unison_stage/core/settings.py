"""Application settings and configuration.

This module defines all configuration options for the Unison Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Unison Stage application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Unison", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./unison.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Key-value cache for lookups, nonces and rate limiting
    cache_backend: Literal["memory", "redis"] = Field(default="memory", alias="CACHE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    cache_ttl_seconds: int = Field(default=604_800, alias="CACHE_TTL_SECONDS")

    # Protection and moderation
    protection_min_score: int = Field(default=5, alias="PROTECTION_MIN_SCORE")
    reports_before_penalty: int = Field(default=5, alias="REPORTS_BEFORE_PENALTY")
    penalty_score_deduction: int = Field(default=10, alias="PENALTY_SCORE_DEDUCTION")
    report_penalty_repeat: bool = Field(default=False, alias="REPORT_PENALTY_REPEAT")

    # Reputation and consensus scoring
    reputation_default: float = Field(default=1.0, alias="REPUTATION_DEFAULT")
    reputation_min: float = Field(default=0.0, alias="REPUTATION_MIN")
    reputation_max: float = Field(default=2.0, alias="REPUTATION_MAX")
    consensus_delta: float = Field(default=0.1, alias="CONSENSUS_DELTA")
    consensus_threshold: float = Field(default=0.5, alias="CONSENSUS_THRESHOLD")
    self_vote_weight: float = Field(default=0.5, alias="SELF_VOTE_WEIGHT")
    min_votes_for_confidence: int = Field(default=5, alias="MIN_VOTES_FOR_CONFIDENCE")
    rescore_window_seconds: int = Field(default=3600, alias="RESCORE_WINDOW_SECONDS")

    # Periodic score updater
    score_update_enabled: bool = Field(default=True, alias="SCORE_UPDATE_ENABLED")
    score_update_interval_seconds: float = Field(
        default=300.0,
        alias="SCORE_UPDATE_INTERVAL_SECONDS",
    )
    # Key ids allowed to trigger an on-demand cycle over HTTP; empty disables it
    score_update_operator_keys: list[str] = Field(
        default_factory=list,
        alias="SCORE_UPDATE_OPERATOR_KEYS",
    )

    # Matching
    duration_tolerance_seconds: int = Field(default=2, alias="DURATION_TOLERANCE_SECONDS")

    # Signed request verification
    signed_request_tolerance_seconds: int = Field(
        default=300,
        alias="SIGNED_REQUEST_TOLERANCE_SECONDS",
    )
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")

    # Submission throttling per signing key
    submit_rate_limit: int = Field(default=10, alias="SUBMIT_RATE_LIMIT")
    submit_rate_window_seconds: int = Field(default=60, alias="SUBMIT_RATE_WINDOW_SECONDS")

    # Validation bounds
    lyrics_max_bytes: int = Field(default=5 * 1024 * 1024, alias="LYRICS_MAX_BYTES")
    ttml_min_bytes: int = Field(default=50, alias="TTML_MIN_BYTES")
    field_max_length: int = Field(default=500, alias="FIELD_MAX_LENGTH")
    duration_min_seconds: int = Field(default=1, alias="DURATION_MIN_SECONDS")
    duration_max_seconds: int = Field(default=60 * 60, alias="DURATION_MAX_SECONDS")
    report_details_max_length: int = Field(default=1000, alias="REPORT_DETAILS_MAX_LENGTH")

    # CORS configuration for browser extension access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "X-Device-ID"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
