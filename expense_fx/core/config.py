from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"static", "currencyapi"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    CURRENCY_API_KEY, RATE_LOOKBACK_DAYS, RATES_CACHE_TTL_SECONDS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Expense FX"
    debug: bool = False
    version: str = "0.1.0"

    # Rate lookup service
    # Allowed: 'currencyapi' (currencyapi.com historical endpoint), 'static' (in-memory table)
    rate_provider: str = "currencyapi"
    currency_api_key: Optional[str] = None
    currency_api_url: AnyHttpUrl = "https://api.currencyapi.com/v3/historical"  # type: ignore[assignment]
    http_timeout_seconds: float = Field(5.0, gt=0)

    # Resolution window / caching
    rate_lookback_days: int = Field(365, gt=0)
    rates_cache_ttl_seconds: int = Field(86400, ge=0)  # historical rates rarely move

    def init_post_load(self) -> None:
        """Validate derived settings."""
        if self.rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported rate_provider '{self.rate_provider}'. Allowed: {ALLOWED_RATE_PROVIDERS}"
            )

    @property
    def api_key_configured(self) -> bool:
        key = (self.currency_api_key or "").strip()
        return bool(key) and key.lower() != "your_currency_api_key_here"


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
