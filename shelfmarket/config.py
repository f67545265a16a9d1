"""Application settings, loaded from environment variables (and an optional
``.env`` file).  Every field can be overridden by the upper-cased
variable of the same name, e.g. ``AIRTABLE_API_TOKEN``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic model for application settings, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field("sqlite:///./shelfmarket.db", description="SQLAlchemy database URL")

    # Airtable sync is disabled while no token is configured
    airtable_api_token: Optional[str] = Field(None, description="Airtable personal access token")
    airtable_base_id: str = Field("", description="Airtable base id")
    airtable_api_url: str = Field("https://api.airtable.com/v0", description="Airtable REST root")
    airtable_companies_table: str = "Companies"
    airtable_invoices_table: str = "Invoices"

    http_timeout_seconds: float = Field(10.0, description="Timeout for outbound HTTP calls")
    http_max_attempts: int = Field(3, description="Attempts per outbound call, with exponential backoff")
    http_backoff_seconds: float = 0.5

    max_upload_bytes: int = Field(50 * 1024 * 1024, description="Largest accepted document or attachment")

    log_level: str = "INFO"

    renewal_warning_days: int = 30
    renewal_urgent_days: int = 7


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return application settings."""
    return settings
