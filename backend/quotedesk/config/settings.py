from __future__ import annotations

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYMBOLS = [
    "AAPL",
    "MSFT",
    "AMZN",
    "NVDA",
    "TSLA",
    "META",
    "GOOGL",
    "BRK.B",
    "JPM",
    "JNJ",
]


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUOTEDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )
    alpha_vantage_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "alpha_vantage_api_key",
            "ALPHA_VANTAGE_API_KEY",
            "QUOTEDESK_ALPHA_VANTAGE_API_KEY",
        ),
    )
    alpha_vantage_base_url: str = "https://www.alphavantage.co"
    timeout_seconds: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUOTEDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("redis_url", "REDIS_URL", "QUOTEDESK_REDIS_URL"),
    )
    cache_table_name: str = Field(
        default="stock-price-cache",
        validation_alias=AliasChoices(
            "cache_table_name", "CACHE_TABLE_NAME", "QUOTEDESK_CACHE_TABLE_NAME"
        ),
    )
    cache_ttl_seconds: int = Field(
        default=45,
        ge=0,
        validation_alias=AliasChoices(
            "cache_ttl_seconds", "CACHE_TTL", "QUOTEDESK_CACHE_TTL_SECONDS"
        ),
    )
    quote_queue_name: str = Field(
        default="quotes",
        validation_alias=AliasChoices(
            "quote_queue_name", "QUOTE_QUEUE_NAME", "QUOTEDESK_QUOTE_QUEUE_NAME"
        ),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("log_level", "LOG_LEVEL", "QUOTEDESK_LOG_LEVEL"),
    )
    default_symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    # Adds a per-symbol failures list to responses.
    expose_failures: bool = False

    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
