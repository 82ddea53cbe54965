"""sellerflow settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sellerflow.models.common import ApiFamily


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Client-wide settings loaded from environment variables / .env file.

    Backend location and tokens are deployment-specific. Never hardcode them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Marketplace backend ---
    MARKETPLACE_API_URL: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the marketplace REST backend.",
    )
    API_FAMILY: ApiFamily = Field(
        default=ApiFamily.BUSINESS,
        description="Wire family the backend speaks (business/* or company/*).",
    )
    API_TOKEN: str = Field(
        default="",
        description="Bearer token issued by the auth collaborator.",
    )
    REQUEST_TIMEOUT_S: float = Field(
        default=15.0,
        gt=0,
        description="Timeout applied to every remote call.",
    )

    # --- Local cache ---
    CACHE_PATH: str = Field(
        default="",
        description="JSON file for the advisory key-value cache. Empty keeps it in memory.",
    )

    # --- Status gate ---
    STATUS_POLL_INTERVAL_S: float = Field(
        default=30.0,
        gt=0,
        description="Delay between application status refreshes while pending.",
    )
    STATUS_POLL_MAX_ATTEMPTS: int = Field(
        default=20,
        ge=1,
        description="Upper bound on status refreshes per watch.",
    )
    APPROVED_REDIRECT_DELAY_S: float = Field(
        default=2.0,
        ge=0,
        description="Display delay before redirecting an approved seller (UI hint).",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD


def get_settings() -> Settings:
    """Factory function so callers and tests can build fresh settings."""
    return Settings()
