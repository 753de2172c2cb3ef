from __future__ import annotations

import asyncio
import logging
from typing import Mapping

import httpx

from quotedesk.errors import ProviderError
from quotedesk.providers.base import get_json, to_float
from quotedesk.schemas.quote import IndexRecord, QuoteRecord


logger = logging.getLogger(__name__)

_CHART_PATH = "/v8/finance/chart/{symbol}"


def _chart_meta(payload: object, provider: str, symbol: str) -> tuple[dict, dict]:
    """Return ``(meta, result)`` from a chart payload or raise ProviderError."""
    try:
        result = payload["chart"]["result"][0]  # type: ignore[index]
        meta = result["meta"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError(provider, "invalid_response", f"No chart data for {symbol}") from exc
    if not isinstance(meta, dict) or not isinstance(result, dict):
        raise ProviderError(provider, "invalid_response", f"No chart data for {symbol}")
    return meta, result


def _previous_close(meta: dict) -> float | None:
    previous = to_float(meta.get("previousClose"))
    if previous is None:
        previous = to_float(meta.get("chartPreviousClose"))
    return previous


def _changes(price: float | None, previous: float | None) -> tuple[float | None, float | None]:
    if price is None or previous is None:
        return None, None
    change = price - previous
    percent = (price / previous - 1) * 100 if previous else None
    return change, percent


def _last_value(quote: dict, field: str) -> float | None:
    values = quote.get(field)
    if not isinstance(values, list) or not values:
        return None
    return to_float(values[-1])


class YahooFinanceClient:
    name = "Yahoo Finance"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://query1.finance.yahoo.com",
        symbol_suffix: str = ".NS",
        user_agent: str | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._suffix = symbol_suffix
        self._headers = {"User-Agent": user_agent} if user_agent else None

    def provider_symbol(self, symbol: str) -> str:
        if "." in symbol or symbol.startswith("^") or not self._suffix:
            return symbol
        return f"{symbol}{self._suffix}"

    async def _chart(self, provider_symbol: str) -> object:
        url = self._base_url + _CHART_PATH.format(symbol=provider_symbol)
        return await get_json(
            self._client, self.name, url, params={"interval": "1d"}, headers=self._headers
        )

    async def fetch_quote(self, symbol: str) -> QuoteRecord:
        provider_symbol = self.provider_symbol(symbol)
        payload = await self._chart(provider_symbol)
        meta, result = _chart_meta(payload, self.name, provider_symbol)

        quote: dict = {}
        indicators = result.get("indicators")
        if isinstance(indicators, dict):
            quotes = indicators.get("quote")
            if isinstance(quotes, list) and quotes and isinstance(quotes[0], dict):
                quote = quotes[0]

        price = to_float(meta.get("regularMarketPrice"))
        change, percent = _changes(price, _previous_close(meta))
        company_name = meta.get("shortName") or meta.get("longName")
        if not company_name:
            company_name = symbol.removesuffix(self._suffix) if self._suffix else symbol

        return QuoteRecord(
            symbol=symbol,
            company_name=company_name,
            price=price,
            change=change,
            percent_change=percent,
            high=_last_value(quote, "high"),
            low=_last_value(quote, "low"),
            open=_last_value(quote, "open"),
            volume=_last_value(quote, "volume"),
            source=self.name,
        )

    async def _fetch_index(self, name: str, symbol: str) -> IndexRecord | None:
        try:
            payload = await self._chart(symbol)
            meta, _ = _chart_meta(payload, self.name, symbol)
        except ProviderError as exc:
            logger.warning("Yahoo index %s unavailable: %s", symbol, exc.message)
            return None

        value = to_float(meta.get("regularMarketPrice"))
        change, percent = _changes(value, _previous_close(meta))
        return IndexRecord(
            name=meta.get("shortName") or name,
            value=value,
            change=change,
            percent_change=percent,
            source=self.name,
        )

    async def fetch_indices(self, indices: Mapping[str, str]) -> list[IndexRecord]:
        results = await asyncio.gather(
            *(self._fetch_index(name, symbol) for name, symbol in indices.items())
        )
        return [record for record in results if record is not None]
