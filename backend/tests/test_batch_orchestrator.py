import asyncio
import threading

import pytest

from quotedesk.core.exceptions import ConfigurationError
from quotedesk.schemas.quote import FailureKind, ProviderFailure, QuoteRecord

from conftest import NOW, StubProvider, build_orchestrator


def test_symbols_are_normalized_before_dispatch(provider, fake_redis) -> None:
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch([" aapl", "msft "], NOW))

    assert sorted(provider.calls) == ["AAPL", "MSFT"]
    assert [quote.symbol for quote in result.quotes] == ["AAPL", "MSFT"]
    assert result.requested == 2
    assert result.returned == 2
    assert result.fresh == 2
    assert result.cached == 0


def test_failed_symbol_is_dropped(fake_redis) -> None:
    provider = StubProvider(
        prices={"AAPL": 185.5, "MSFT": 378.25, "NVDA": 485.25},
        failures={"MSFT": FailureKind.RATE_LIMITED},
    )
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT", "NVDA"], NOW))

    assert [quote.symbol for quote in result.quotes] == ["AAPL", "NVDA"]
    assert result.requested == 3
    assert result.returned == 2
    assert [failure.symbol for failure in result.failures] == ["MSFT"]
    assert result.failures[0].kind == FailureKind.RATE_LIMITED


def test_result_order_follows_input_not_completion(fake_redis) -> None:
    provider = StubProvider(
        prices={"AAPL": 1.0, "MSFT": 2.0, "NVDA": 3.0},
        delays={"AAPL": 0.3, "MSFT": 0.15},
    )
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT", "NVDA"], NOW))

    assert [quote.symbol for quote in result.quotes] == ["AAPL", "MSFT", "NVDA"]


def test_fetches_run_concurrently(fake_redis) -> None:
    barrier = threading.Barrier(3, timeout=5)

    class BarrierProvider(StubProvider):
        def fetch(self, symbol: str) -> QuoteRecord | ProviderFailure:
            # Only passes if all three fetches are in flight at once.
            barrier.wait()
            return super().fetch(symbol)

    provider = BarrierProvider(prices={"AAPL": 1.0, "MSFT": 2.0, "NVDA": 3.0})
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT", "NVDA"], NOW))

    assert result.returned == 3


def test_mixed_hits_and_fresh_are_counted(provider, fake_redis) -> None:
    orchestrator = build_orchestrator(provider, fake_redis)
    asyncio.run(orchestrator.fetch_batch(["AAPL"], NOW))

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT"], NOW))

    assert [quote.cached for quote in result.quotes] == [True, False]
    assert result.cached == 1
    assert result.fresh == 1


def test_duplicates_are_each_returned(provider, fake_redis) -> None:
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "aapl"], NOW))

    assert [quote.symbol for quote in result.quotes] == ["AAPL", "AAPL"]
    assert result.requested == 2


def test_empty_batch_returns_zero_counts(provider, fake_redis) -> None:
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch([], NOW))

    assert result.quotes == []
    assert (result.requested, result.returned, result.cached, result.fresh) == (0, 0, 0, 0)
    assert provider.calls == []


def test_blank_symbols_are_ignored(provider, fake_redis) -> None:
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(["AAPL", "  ", ""], NOW))

    assert result.requested == 1
    assert provider.calls == ["AAPL"]


def test_missing_credential_aborts_before_fetching(fake_redis) -> None:
    provider = StubProvider(prices={"AAPL": 1.0}, api_key=None)
    orchestrator = build_orchestrator(provider, fake_redis)

    with pytest.raises(ConfigurationError) as excinfo:
        asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT"], NOW))

    assert excinfo.value.code == "CONFIGURATION_ERROR"
    assert provider.calls == []


def test_not_configured_outcome_escalates(fake_redis) -> None:
    provider = StubProvider(prices={"AAPL": 1.0}, failures={"MSFT": FailureKind.NOT_CONFIGURED})
    orchestrator = build_orchestrator(provider, fake_redis)

    with pytest.raises(ConfigurationError):
        asyncio.run(orchestrator.fetch_batch(["AAPL", "MSFT"], NOW))


def test_large_batch_is_not_throttled_by_shared_thread_pool(fake_redis) -> None:
    # More symbols than asyncio's default executor ever has workers (32).
    symbols = [f"S{index}" for index in range(40)]
    provider = StubProvider(
        prices={symbol: 10.0 for symbol in symbols},
        delays={symbol: 0.8 for symbol in symbols},
        timeout_seconds=0.5,
    )
    orchestrator = build_orchestrator(provider, fake_redis)

    result = asyncio.run(orchestrator.fetch_batch(symbols, NOW))

    assert result.requested == 40
    assert result.returned == 40
    assert result.failures == []
    assert [quote.symbol for quote in result.quotes] == symbols
