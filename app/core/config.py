"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here — no scattered magic strings.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_enabled: Toggle slowapi enforcement.
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_trades: Rate limit for order submission.
        database_url: Full SQLAlchemy URL. Built from postgres_* when unset.
        price_oracle_base_url: CoinGecko API root.
        price_oracle_api_key: Optional CoinGecko demo API key.
        price_oracle_timeout_seconds: HTTP timeout for price lookups.
        price_oracle_max_requests_per_minute: Upstream request budget.
        price_oracle_cache_ttl_seconds: How long a fetched price is reused.
        default_trade_history_limit: Trades returned when no limit is given.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Cryptofolio"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_trades: str = "30/minute"

    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "cryptofolio"

    price_oracle_base_url: str = "https://api.coingecko.com/api/v3"
    price_oracle_api_key: Optional[str] = None
    price_oracle_timeout_seconds: float = 10.0
    price_oracle_max_requests_per_minute: int = 10
    price_oracle_cache_ttl_seconds: float = 30.0

    default_trade_history_limit: int = 50

    def get_database_url(self) -> str:
        """Return the effective SQLAlchemy URL for the ledger store.

        Priority:
        1. Explicit `DATABASE_URL`
        2. Build a PostgreSQL URL from postgres_* values
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
