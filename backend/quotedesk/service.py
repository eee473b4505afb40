from __future__ import annotations

from functools import lru_cache

from redis import Redis

from quotedesk.cache import QuoteCache
from quotedesk.config.settings import Settings, settings as default_settings
from quotedesk.fetcher import QuoteFetcher, QuoteProvider
from quotedesk.orchestrator import BatchFetchOrchestrator
from quotedesk.providers.alpha_vantage import AlphaVantageProvider


@lru_cache(maxsize=None)
def get_redis_client(redis_url: str) -> Redis:
    """One shared client (and connection pool) per Redis URL."""
    return Redis.from_url(redis_url)


def build_orchestrator(
    config: Settings | None = None,
    client: object | None = None,
    provider: QuoteProvider | None = None,
) -> BatchFetchOrchestrator:
    config = config or default_settings
    if client is None:
        client = get_redis_client(config.redis_url)
    if provider is None:
        provider = AlphaVantageProvider(
            api_key=config.providers.alpha_vantage_api_key,
            base_url=config.providers.alpha_vantage_base_url,
            timeout_seconds=config.providers.timeout_seconds,
        )
    cache = QuoteCache(client, table_name=config.cache_table_name)
    fetcher = QuoteFetcher(cache, provider, ttl_seconds=config.cache_ttl_seconds)
    return BatchFetchOrchestrator(fetcher)
