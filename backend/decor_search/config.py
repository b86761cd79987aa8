"""Application configuration via Pydantic Settings."""

from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Value shipped in .env.example; treated the same as an empty key.
PLACEHOLDER_API_KEY = "your_rapidapi_key_here"


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    DEBUG: bool = False  # forces DEBUG logging

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # RapidAPI credentials, one subscription per marketplace
    RAPIDAPI_KEY_WAYFAIR: str = ""
    RAPIDAPI_KEY_ETSY: str = ""
    RAPIDAPI_KEY_AMAZON: str = ""

    # Amazon marketplace region passed as the `geo` search parameter
    AMAZON_GEO: str = "US"

    # HTTP
    REQUEST_TIMEOUT: float = 30.0  # seconds per upstream call

    # Per-provider request queue
    QUEUE_MAX_CONCURRENT: int = 1
    QUEUE_INTER_BATCH_DELAY: float = 2.5  # seconds between batches

    # Retry policy
    RETRY_MAX_RETRIES: int = 3  # retries after the first attempt
    RETRY_BASE_DELAY: float = 1.0  # seconds, doubled on every retry

    # Suppress calls to a provider after a 401/403
    PROVIDER_COOLDOWN_SECONDS: float = 300.0

    # Result bounds
    MAX_RESULTS_PER_PROVIDER: int = 500
    COMBINED_MAX_RESULTS: int = 1000

    # Source balancing
    BALANCE_PRIMARY_PROVIDER: Optional[str] = "amazon"
    BALANCE_PRIMARY_RATIO: float = 0.6

    @model_validator(mode="after")
    def check_limits(self) -> "Settings":
        """Reject settings the search pipeline cannot honour."""
        if not 0 < self.BALANCE_PRIMARY_RATIO <= 1:
            raise ValueError("BALANCE_PRIMARY_RATIO must be in (0, 1]")
        if self.QUEUE_MAX_CONCURRENT < 1:
            raise ValueError("QUEUE_MAX_CONCURRENT must be at least 1")
        if self.RETRY_MAX_RETRIES < 0:
            raise ValueError("RETRY_MAX_RETRIES cannot be negative")
        if self.BALANCE_PRIMARY_PROVIDER is not None:
            self.BALANCE_PRIMARY_PROVIDER = self.BALANCE_PRIMARY_PROVIDER.strip().lower() or None
        return self

    def get_api_key(self, provider: str) -> str:
        """Return the configured RapidAPI key for a provider slug.

        Args:
            provider: Provider slug (e.g., "etsy")

        Returns:
            The key, or an empty string when it is unset or still the placeholder
        """
        key = getattr(self, f"RAPIDAPI_KEY_{provider.upper()}", "") or ""
        key = key.strip()
        if key == PLACEHOLDER_API_KEY:
            return ""
        return key


settings = Settings()
