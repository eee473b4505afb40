from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from quotedesk.core.exceptions import ConfigurationError
from quotedesk.orchestrator import BatchFetchOrchestrator, normalize_symbol
from quotedesk.schemas.quote import QuoteBatchResponse


logger = logging.getLogger(__name__)


def _split_symbols(raw: str) -> list[str]:
    return [normalize_symbol(part) for part in raw.split(",")]


def parse_symbols(event: Mapping[str, Any] | None, default_symbols: Sequence[str]) -> list[str]:
    """Resolve the requested symbols from an inbound request mapping.

    Accepts ``{"queryStringParameters": {"symbols": "AAPL,MSFT"}}``,
    ``{"symbols": "AAPL,MSFT"}`` and ``{"symbols": ["AAPL", "MSFT"]}``.
    Falls back to ``default_symbols`` when none of these is present. An
    explicit empty list stays empty.
    """
    event = event or {}

    query = event.get("queryStringParameters")
    if isinstance(query, Mapping):
        raw = query.get("symbols")
        if isinstance(raw, str) and raw.strip():
            return _split_symbols(raw)

    raw = event.get("symbols")
    if isinstance(raw, str) and raw.strip():
        return _split_symbols(raw)
    if isinstance(raw, (list, tuple)):
        return [normalize_symbol(symbol) for symbol in raw if isinstance(symbol, str)]

    return list(default_symbols)


def _error_response(message: str, now: datetime.datetime) -> dict:
    response = QuoteBatchResponse(success=False, error=message, timestamp=now.isoformat())
    return response.model_dump(by_alias=True, exclude_none=True, mode="json")


async def handle_quote_request(
    event: Mapping[str, Any] | None,
    orchestrator: BatchFetchOrchestrator,
    default_symbols: Sequence[str],
    now: datetime.datetime | None = None,
    expose_failures: bool = False,
) -> dict:
    now = now or datetime.datetime.now(datetime.UTC)
    try:
        symbols = parse_symbols(event, default_symbols)
        result = await orchestrator.fetch_batch(symbols, now)
    except ConfigurationError as exc:
        logger.error("Quote fetch not configured: %s", exc.message)
        return _error_response(exc.message, now)
    except Exception as exc:
        logger.exception("Error in quote request handler")
        return _error_response(str(exc) or exc.__class__.__name__, now)

    response = QuoteBatchResponse(
        success=True,
        quotes=result.quotes,
        timestamp=now.isoformat(),
        cached=result.cached,
        fresh=result.fresh,
        failures=result.failures if expose_failures else None,
    )
    return response.model_dump(by_alias=True, exclude_none=True, mode="json")
