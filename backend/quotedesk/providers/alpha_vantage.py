from __future__ import annotations

import json
import logging
import math
import socket
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

from quotedesk.schemas.quote import FailureKind, ProviderFailure, QuoteRecord


logger = logging.getLogger(__name__)

_QUERY_PATH = "/query"


def parse_float(value: Any) -> float:
    """Parse an upstream numeric field, falling back to 0.0."""
    if isinstance(value, str):
        value = value.strip()
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed):
        return 0.0
    return parsed


def parse_percent(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip().removesuffix("%")
    return parse_float(value)


def parse_volume(value: Any) -> int:
    parsed = int(parse_float(value))
    return parsed if parsed > 0 else 0


def normalize_global_quote(symbol: str, quote: dict) -> QuoteRecord:
    return QuoteRecord(
        symbol=symbol,
        price=parse_float(quote.get("05. price")),
        change=parse_float(quote.get("09. change")),
        change_pct=parse_percent(quote.get("10. change percent")),
        volume=parse_volume(quote.get("06. volume")),
        latest_trading_day=str(quote.get("07. latest trading day") or ""),
        previous_close=parse_float(quote.get("08. previous close")),
        open=parse_float(quote.get("02. open")),
        high=parse_float(quote.get("03. high")),
        low=parse_float(quote.get("04. low")),
    )


class AlphaVantageProvider:
    """Alpha Vantage GLOBAL_QUOTE adapter.

    One HTTP attempt per call, bounded by ``timeout_seconds``. Every failure is
    returned as a ``ProviderFailure`` value rather than raised.
    """

    name = "alpha_vantage"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://www.alphavantage.co",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def is_ready(self) -> bool:
        return bool(self.api_key)

    def _build_url(self, params: dict[str, str]) -> str:
        return f"{self.base_url}{_QUERY_PATH}?{urlencode(params)}"

    def _failure(self, symbol: str, kind: FailureKind, detail: str | None = None) -> ProviderFailure:
        logger.warning("Alpha Vantage fetch failed for %s: %s (%s)", symbol, kind.value, detail)
        return ProviderFailure(symbol=symbol, kind=kind, detail=detail)

    def fetch(self, symbol: str) -> QuoteRecord | ProviderFailure:
        if not self.api_key:
            return self._failure(
                symbol, FailureKind.NOT_CONFIGURED, "ALPHA_VANTAGE_API_KEY not configured"
            )

        url = self._build_url(
            {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key}
        )
        request = Request(url)
        logger.debug("Fetching %s from Alpha Vantage", symbol)
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                body = response.read().decode("utf-8")
            payload = json.loads(body)
        except HTTPError as exc:
            if exc.code == 429:
                return self._failure(symbol, FailureKind.RATE_LIMITED, f"HTTP {exc.code}")
            return self._failure(symbol, FailureKind.UPSTREAM_ERROR, f"HTTP {exc.code}")
        except (TimeoutError, socket.timeout) as exc:
            return self._failure(symbol, FailureKind.TIMEOUT, str(exc) or "timed out")
        except OSError as exc:
            reason = getattr(exc, "reason", exc)
            if isinstance(reason, (TimeoutError, socket.timeout)):
                return self._failure(symbol, FailureKind.TIMEOUT, str(reason))
            return self._failure(symbol, FailureKind.UPSTREAM_ERROR, str(reason))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return self._failure(symbol, FailureKind.MALFORMED_RESPONSE, str(exc))

        return self._parse_payload(symbol, payload)

    def _parse_payload(self, symbol: str, payload: Any) -> QuoteRecord | ProviderFailure:
        if not isinstance(payload, dict):
            return self._failure(symbol, FailureKind.MALFORMED_RESPONSE, "payload is not an object")

        if payload.get("Error Message"):
            return self._failure(symbol, FailureKind.UPSTREAM_ERROR, str(payload["Error Message"]))

        # Alpha Vantage reports exhausted quota as a 200 with a "Note"/"Information" body.
        note = payload.get("Note") or payload.get("Information")
        if note:
            return self._failure(symbol, FailureKind.RATE_LIMITED, str(note))

        quote = payload.get("Global Quote")
        if not isinstance(quote, dict):
            return self._failure(symbol, FailureKind.MALFORMED_RESPONSE, "missing Global Quote")
        if not quote:
            return self._failure(symbol, FailureKind.EMPTY_RESULT, f"No data returned for {symbol}")

        try:
            record = normalize_global_quote(symbol, quote)
        except ValidationError as exc:
            return self._failure(symbol, FailureKind.MALFORMED_RESPONSE, str(exc))

        sign = "+" if record.change_pct > 0 else ""
        logger.info(
            "Fetched %s: $%s (%s%s%%)", record.symbol, record.price, sign, record.change_pct
        )
        return record
