"""Configuration management for taskboard."""

from datetime import time, tzinfo

from dateutil import tz
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote record source (used by the HTTP client)
    api_base_url: str = Field(default="http://127.0.0.1:8000", description="Base URL of the task board API")
    api_timeout_seconds: float = Field(default=30.0, description="Timeout for remote record source calls")

    # Local record store (used by the API server)
    sqlite_db_path: str = Field(default="taskboard.db", description="SQLite database file for the API server")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Viewer timezone for due-date bucketing (IANA name, e.g. "Europe/Berlin")
    timezone: str | None = Field(default=None, description="Viewer timezone; defaults to the system local zone")

    # Task creation policy
    require_assignee: bool = Field(default=False, description="Reject new tasks with zero assignees")
    require_due_date: bool = Field(default=False, description="Reject new tasks without a due date")

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production."""
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
                f"Set TASKBOARD_{field_name.upper()} environment variable or add to .env file."
            )
        return value

    def local_timezone(self) -> tzinfo:
        """Resolve the viewer timezone used for calendar-day comparisons.

        Raises:
            ValueError: If the configured timezone name is unknown
        """
        if not self.timezone:
            return tz.tzlocal()
        zone = tz.gettz(self.timezone)
        if zone is None:
            raise ValueError(f"Unknown timezone: {self.timezone}")
        return zone


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_UNAUTHORIZED: int = 401
    HTTP_FORBIDDEN: int = 403
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500
    HTTP_SERVICE_UNAVAILABLE: int = 503

    # Identity header set by the upstream authentication layer
    VIEWER_HEADER: str = "X-Viewer-Id"

    # Due dates without a time component mean the end of that local day
    END_OF_DAY: time = time(23, 59, 59, 999000)

    # View sentinels
    ALL_CATEGORIES: str = "all"
    ALL_BUCKETS: str = "__all__"
    UNASSIGNED_BUCKET_ID: str = "__unassigned__"
    UNASSIGNED_BUCKET_LABEL: str = "Unassigned"

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 1000


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
