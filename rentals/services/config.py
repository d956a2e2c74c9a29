"""Application configuration from environment variables."""

from functools import lru_cache

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables and the .env file."""

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(
        default="sqlite:///./rentals.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/billing.log", description="Path to log file")

    # Billing
    billing_max_periods_per_lease: int = Field(
        default=24,
        ge=1,
        description="Most invoices one billing run creates for a single lease",
    )
    billing_stop_on_lease_error: bool = Field(
        default=False,
        description="Abort the whole billing run when one lease fails instead of skipping it",
    )


@lru_cache
def get_settings() -> Settings:
    """Get the settings instance, created on first use.

    Tests call get_settings.cache_clear() after changing the environment.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
