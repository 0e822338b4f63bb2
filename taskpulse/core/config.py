"""Configuration management for taskpulse."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="./data/taskpulse.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Analytics Configuration
    analytics_timezone: str = Field(
        default="UTC", description="IANA time zone used to bucket completions into calendar days"
    )
    progress_window_days: int = Field(default=30, ge=1, description="Trailing window for progress time series")
    stale_task_days: int = Field(
        default=7, ge=0, description="Days without an update before an incomplete task counts as long-running"
    )
    bottleneck_limit: int = Field(default=10, ge=1, description="Maximum entries per bottleneck list")
    reassigned_min_assignees: int = Field(
        default=2, ge=0, description="Tasks with more assignees than this appear in the most-reassigned list"
    )
    avg_per_week_policy: Literal["calendar", "legacy"] = Field(
        default="calendar",
        description="'calendar' averages over calendar weeks, 'legacy' keeps the total/ceil(total/7) formula",
    )

    # Optimistic Concurrency
    max_write_attempts: int = Field(
        default=3, ge=1, description="Attempts for a read-modify-write before a version conflict is surfaced"
    )

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment.lower() == "production"

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_BAD_REQUEST: int = 400
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500

    # Task Validation
    TASK_TITLE_MIN_LENGTH: int = 3
    TASK_TITLE_MAX_LENGTH: int = 200
    TASK_DESCRIPTION_MAX_LENGTH: int = 2000

    # Workflow Steps
    WORKFLOW_STEP_ID_BYTES: int = 6  # token_urlsafe(6) yields 8 characters
    WORKFLOW_STEP_LABEL_MAX_LENGTH: int = 200

    # Timer
    SECONDS_PER_MINUTE: int = 60

    # Insights
    INSIGHT_GREAT_PACE_PER_WEEK: int = 5  # Weekly average above this earns the "great pace" insight

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Default page size when loading task snapshots


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
