"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
Reward rates and milestone rules are business data and live in the
``reward_rate_settings`` table, not here.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from referral_ledger.models.enums import PeriodType


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_busy_timeout: float = Field(
        default=30.0,
        gt=0,
        description="SQLite busy timeout in seconds (ignored by PostgreSQL)",
    )

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None
    log_rotation: str = "1 day"
    log_retention: str = "7 days"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Analytics schedule (UTC)
    analytics_period_type: str = PeriodType.DAILY.value
    analytics_run_hour: int = Field(default=0, ge=0, le=23)
    analytics_run_minute: int = Field(default=15, ge=0, le=59)

    # Reward issuance
    reward_issue_max_retries: int = Field(
        default=3, ge=0, description="Redeliveries for retryable issue failures"
    )

    # Outbound notification collaborator
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate loguru level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL: {v}. Expected one of {', '.join(LOG_LEVELS)}"
            )
        return level

    @field_validator("analytics_period_type")
    @classmethod
    def validate_period_type(cls, v: str) -> str:
        """Validate analytics period type."""
        try:
            return PeriodType(v.lower()).value
        except ValueError as exc:
            raise ValueError(
                f"Invalid ANALYTICS_PERIOD_TYPE: {v}. "
                "Expected daily, weekly or monthly"
            ) from exc

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


settings = Settings()
