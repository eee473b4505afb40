from __future__ import annotations

import asyncio
import datetime
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Protocol

from quotedesk.cache import QuoteCache, day_key
from quotedesk.schemas.quote import FailureKind, FetchOutcome, ProviderFailure, QuoteRecord


logger = logging.getLogger(__name__)

# Headroom on top of the provider's own socket timeout before the task is abandoned.
_DEADLINE_GRACE_SECONDS = 1.0


class QuoteProvider(Protocol):
    name: str
    timeout_seconds: float

    def is_ready(self) -> bool: ...

    def fetch(self, symbol: str) -> QuoteRecord | ProviderFailure: ...


def _failed(symbol: str, kind: FailureKind, detail: str | None = None) -> FetchOutcome:
    return FetchOutcome(
        status="failed",
        symbol=symbol,
        failure=ProviderFailure(symbol=symbol, kind=kind, detail=detail),
    )


class QuoteFetcher:
    """Cache-aside fetch of a single symbol.

    Reads the day's cache entry first; on a miss makes one provider call and
    stores a successful result. Returns a ``hit``, ``fresh`` or ``failed``
    outcome and never raises.
    """

    def __init__(self, cache: QuoteCache, provider: QuoteProvider, ttl_seconds: int) -> None:
        self._cache = cache
        self._provider = provider
        self._ttl_seconds = ttl_seconds

    def is_configured(self) -> bool:
        return self._provider.is_ready()

    async def fetch_one(
        self, symbol: str, now: datetime.datetime, executor: Executor | None = None
    ) -> FetchOutcome:
        """Fetch one symbol. Blocking calls run on ``executor`` (the loop default if None)."""
        try:
            return await self._fetch_one(symbol, now, executor)
        except Exception as exc:
            logger.exception("Error fetching quote for %s", symbol)
            return _failed(symbol, FailureKind.UPSTREAM_ERROR, str(exc))

    async def _fetch_one(
        self, symbol: str, now: datetime.datetime, executor: Executor | None
    ) -> FetchOutcome:
        loop = asyncio.get_running_loop()

        def run(func: Callable[..., Any], *args: Any) -> asyncio.Future:
            return loop.run_in_executor(executor, func, *args)

        day = day_key(now)

        cached = await run(self._cache.get, symbol, day, now)
        if cached is not None:
            logger.debug("Cache HIT for %s", symbol)
            return FetchOutcome(
                status="hit",
                symbol=symbol,
                record=cached.model_copy(update={"cached": True}),
            )

        logger.debug("Cache MISS for %s", symbol)
        deadline = self._provider.timeout_seconds + _DEADLINE_GRACE_SECONDS
        try:
            result = await asyncio.wait_for(run(self._provider.fetch, symbol), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning("Provider call for %s exceeded %ss", symbol, deadline)
            return _failed(symbol, FailureKind.TIMEOUT, f"no response within {deadline}s")

        if isinstance(result, ProviderFailure):
            return FetchOutcome(status="failed", symbol=symbol, failure=result)

        record = result.model_copy(update={"symbol": symbol, "cached": False})
        # Awaited so the entry is readable once the outcome is returned; put never raises.
        await run(self._cache.put, symbol, day, record, self._ttl_seconds, now)
        return FetchOutcome(status="fresh", symbol=symbol, record=record)
