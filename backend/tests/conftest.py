import datetime
import time

import pytest

from quotedesk.cache import QuoteCache
from quotedesk.fetcher import QuoteFetcher
from quotedesk.orchestrator import BatchFetchOrchestrator
from quotedesk.schemas.quote import FailureKind, ProviderFailure, QuoteRecord


NOW = datetime.datetime(2026, 10, 19, 15, 30, 0, tzinfo=datetime.UTC)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise ConnectionError("redis unavailable")
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        if self.fail_writes:
            raise ConnectionError("redis unavailable")
        self.store[key] = value
        self.expirations[key] = ttl


class StubProvider:
    name = "stub"

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        failures: dict[str, FailureKind] | None = None,
        delays: dict[str, float] | None = None,
        api_key: str | None = "test-key",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.prices = prices or {}
        self.failures = failures or {}
        self.delays = delays or {}
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.calls: list[str] = []

    def is_ready(self) -> bool:
        return bool(self.api_key)

    def fetch(self, symbol: str) -> QuoteRecord | ProviderFailure:
        self.calls.append(symbol)
        if symbol in self.delays:
            time.sleep(self.delays[symbol])
        if symbol in self.failures:
            return ProviderFailure(symbol=symbol, kind=self.failures[symbol])
        if symbol not in self.prices:
            return ProviderFailure(symbol=symbol, kind=FailureKind.EMPTY_RESULT)
        price = self.prices[symbol]
        return QuoteRecord(
            symbol=symbol,
            price=price,
            change=1.25,
            change_pct=0.5,
            previous_close=price - 1.25,
            open=price - 2,
            high=price + 3,
            low=price - 4,
            volume=1_000_000,
            latest_trading_day="2026-10-16",
        )


def build_orchestrator(
    provider: StubProvider, client: FakeRedis, ttl_seconds: int = 45
) -> BatchFetchOrchestrator:
    cache = QuoteCache(client, table_name="test-cache")
    return BatchFetchOrchestrator(QuoteFetcher(cache, provider, ttl_seconds=ttl_seconds))


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def provider() -> StubProvider:
    return StubProvider(prices={"AAPL": 185.5, "MSFT": 378.25, "NVDA": 485.25})
