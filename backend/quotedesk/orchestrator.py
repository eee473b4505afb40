from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from quotedesk.core.exceptions import ConfigurationError
from quotedesk.fetcher import QuoteFetcher
from quotedesk.schemas.quote import BatchResult, FailureKind, ProviderFailure, QuoteRecord


logger = logging.getLogger(__name__)

_NOT_CONFIGURED_MESSAGE = "ALPHA_VANTAGE_API_KEY not configured"


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class BatchFetchOrchestrator:
    """Runs one cache-aside fetch per symbol concurrently and merges the results.

    Failed symbols are dropped from ``quotes`` without affecting the others.
    They are kept in ``failures`` for logging and optional exposure.
    """

    def __init__(self, fetcher: QuoteFetcher) -> None:
        self._fetcher = fetcher

    async def fetch_batch(
        self, symbols: Sequence[str], now: datetime.datetime
    ) -> BatchResult:
        normalized = [normalize_symbol(symbol) for symbol in symbols]
        normalized = [symbol for symbol in normalized if symbol]
        if not normalized:
            return BatchResult()

        if not self._fetcher.is_configured():
            raise ConfigurationError(_NOT_CONFIGURED_MESSAGE)

        logger.info("Fetching quotes for symbols: %s", ", ".join(normalized))
        # One worker per symbol so no fetch waits in a queue behind another.
        executor = ThreadPoolExecutor(
            max_workers=len(normalized), thread_name_prefix="quote-fetch"
        )
        try:
            outcomes = await asyncio.gather(
                *(self._fetcher.fetch_one(symbol, now, executor) for symbol in normalized)
            )
        finally:
            # Abandoned provider calls finish on their own threads.
            executor.shutdown(wait=False)

        quotes: list[QuoteRecord] = []
        failures: list[ProviderFailure] = []
        # gather preserves argument order, so outcomes line up with input positions.
        for outcome in outcomes:
            if outcome.status == "failed" or outcome.record is None:
                if outcome.failure is not None:
                    failures.append(outcome.failure)
                continue
            quotes.append(outcome.record)

        if any(failure.kind == FailureKind.NOT_CONFIGURED for failure in failures):
            raise ConfigurationError(_NOT_CONFIGURED_MESSAGE)

        cached = sum(1 for quote in quotes if quote.cached)
        logger.info(
            "Successfully fetched %d out of %d quotes (%d cached)",
            len(quotes),
            len(normalized),
            cached,
        )
        return BatchResult(
            quotes=quotes,
            failures=failures,
            requested=len(normalized),
            returned=len(quotes),
            cached=cached,
            fresh=len(quotes) - cached,
        )
