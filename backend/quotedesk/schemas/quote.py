from __future__ import annotations

import math
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class QuoteRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    symbol: str
    price: float = 0.0
    change: float = 0.0
    change_pct: float = 0.0
    previous_close: float = 0.0
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: int = Field(default=0, ge=0)
    latest_trading_day: str = ""
    cached: bool = False

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if not cleaned:
            raise ValueError("symbol must not be empty")
        return cleaned

    @field_validator("price", "change", "change_pct", "previous_close", "open", "high", "low")
    @classmethod
    def _require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("numeric quote fields must be finite")
        return value


class CacheEntry(BaseModel):
    symbol: str
    day: str
    data: QuoteRecord
    expires_at: int
    written_at: int
    updated_at: str


class FailureKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    UPSTREAM_ERROR = "upstream_error"
    RATE_LIMITED = "rate_limited"
    EMPTY_RESULT = "empty_result"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"


class ProviderFailure(BaseModel):
    symbol: str
    kind: FailureKind
    detail: str | None = None


class FetchOutcome(BaseModel):
    status: Literal["hit", "fresh", "failed"]
    symbol: str
    record: QuoteRecord | None = None
    failure: ProviderFailure | None = None


class BatchResult(BaseModel):
    quotes: list[QuoteRecord] = Field(default_factory=list)
    failures: list[ProviderFailure] = Field(default_factory=list)
    requested: int = 0
    returned: int = 0
    cached: int = 0
    fresh: int = 0


class QuoteRequest(BaseModel):
    symbols: str | list[str] | None = None


class QuoteBatchResponse(BaseModel):
    success: bool
    quotes: list[QuoteRecord] = Field(default_factory=list)
    timestamp: str
    cached: int = 0
    fresh: int = 0
    error: str | None = None
    failures: list[ProviderFailure] | None = None
