from __future__ import annotations

import datetime
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from quotedesk.errors import InvalidSymbolError


NO_SOURCE_REASON = "Could not retrieve stock data from available sources"
FETCH_FAILED_REASON = "fetch failed"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def normalize_symbol(symbol: str) -> str:
    normalized = (symbol or "").strip().upper()
    if not normalized:
        raise InvalidSymbolError("Symbol must not be blank.")
    return normalized


def is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class _CamelModel(BaseModel):
    # Records are shared between cache readers, so they are immutable.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class QuoteRecord(_CamelModel):
    symbol: str
    company_name: Optional[str] = None
    price: Optional[float] = None
    change: Optional[float] = None
    percent_change: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    volume: Optional[float] = None
    last_updated: datetime.datetime = Field(default_factory=utcnow)
    source: Optional[str] = None
    error_reason: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return self.error_reason is not None

    @classmethod
    def degraded(cls, symbol: str, reason: str = NO_SOURCE_REASON) -> "QuoteRecord":
        return cls(symbol=symbol, company_name=symbol, error_reason=reason)


class IndexRecord(_CamelModel):
    name: str
    value: Optional[float] = None
    change: Optional[float] = None
    percent_change: Optional[float] = None
    last_updated: datetime.datetime = Field(default_factory=utcnow)
    source: Optional[str] = None
