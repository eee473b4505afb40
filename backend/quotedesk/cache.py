from __future__ import annotations

import datetime
import logging
from typing import Any

from pydantic import ValidationError

from quotedesk.core.exceptions import CacheReadError, CacheWriteError
from quotedesk.schemas.quote import CacheEntry, QuoteRecord


logger = logging.getLogger(__name__)


def day_key(now: datetime.datetime) -> str:
    """UTC calendar day used as the cache partition, e.g. ``2026-10-19``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.UTC)
    return now.astimezone(datetime.UTC).date().isoformat()


def epoch_seconds(now: datetime.datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.UTC)
    return int(now.timestamp())


class QuoteCache:
    """Per-day quote cache on top of Redis.

    Entries are keyed by ``(symbol, day)`` and carry an absolute expiry that is
    checked on every read. Redis key expiry only reaps rows physically; an
    entry is valid strictly while ``expires_at > now``.

    Storage errors never reach the caller: a failed read is a miss and a failed
    write is logged and dropped.
    """

    def __init__(self, client: Any, table_name: str = "stock-price-cache") -> None:
        self._client = client
        self._table_name = table_name

    def cache_key(self, symbol: str, day: str) -> str:
        return f"{self._table_name}:{symbol.upper()}:{day}"

    def get(self, symbol: str, day: str, now: datetime.datetime) -> QuoteRecord | None:
        key = self.cache_key(symbol, day)
        try:
            entry = self._read(key)
        except CacheReadError as exc:
            logger.warning("%s", exc.message)
            return None

        if entry is None:
            return None
        if entry.expires_at > epoch_seconds(now):
            return entry.data
        return None

    def put(
        self,
        symbol: str,
        day: str,
        record: QuoteRecord,
        ttl_seconds: int,
        now: datetime.datetime,
    ) -> None:
        key = self.cache_key(symbol, day)
        written_at = epoch_seconds(now)
        entry = CacheEntry(
            symbol=symbol.upper(),
            day=day,
            data=record.model_copy(update={"cached": False}),
            expires_at=written_at + ttl_seconds,
            written_at=written_at,
            updated_at=now.isoformat(),
        )
        try:
            self._write(key, entry, ttl_seconds)
        except CacheWriteError as exc:
            logger.warning("%s", exc.message)
            return None
        logger.debug("Saved %s to cache with TTL: %ss", key, ttl_seconds)

    def _read(self, key: str) -> CacheEntry | None:
        try:
            raw = self._client.get(key)
        except Exception as exc:
            raise CacheReadError(key, str(exc)) from exc

        if not raw:
            return None

        try:
            return CacheEntry.model_validate_json(raw)
        except (ValidationError, ValueError, TypeError) as exc:
            raise CacheReadError(key, "undecodable entry") from exc

    def _write(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        # Redis rejects a zero expiry; the logical expiry still lives in the entry.
        reap_after = max(ttl_seconds, 1)
        try:
            self._client.setex(key, reap_after, entry.model_dump_json())
        except Exception as exc:
            raise CacheWriteError(key, str(exc)) from exc
