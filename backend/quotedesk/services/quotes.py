from __future__ import annotations

import logging
from typing import Sequence

import httpx

from quotedesk.aggregation.batch import BatchOrchestrator
from quotedesk.aggregation.coalescer import RequestCoalescer
from quotedesk.aggregation.indices import IndexAggregator
from quotedesk.cache import TTLCache, stock_cache_key
from quotedesk.config.settings import Settings
from quotedesk.providers.base import IndexProvider, QuoteProvider
from quotedesk.providers.finnhub import FinnhubClient
from quotedesk.providers.moneycontrol import MoneyControlClient
from quotedesk.providers.selector import FallbackFetcher
from quotedesk.providers.yahoo import YahooFinanceClient
from quotedesk.schemas.quote import IndexRecord, QuoteRecord, normalize_symbol


logger = logging.getLogger(__name__)


class QuoteService:
    """Cache-first quote lookups shared by every inbound request.

    A miss goes through the coalescer to the fallback chain and the result is
    cached according to where it came from: primary provider at the standard
    TTL, a fallback provider at the shorter fallback TTL, and degraded records
    at the degraded TTL (or not at all when ``cache_degraded`` is off).
    """

    def __init__(
        self,
        fetcher: FallbackFetcher,
        index_aggregator: IndexAggregator,
        cache: TTLCache,
        coalescer: RequestCoalescer,
        settings: Settings,
    ) -> None:
        self._fetcher = fetcher
        self._indices = index_aggregator
        self._cache = cache
        self._coalescer = coalescer
        self._settings = settings
        self._batch = BatchOrchestrator(self.get_quote, limit=settings.batch_concurrency)

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def ttl_for(self, record: QuoteRecord) -> float | None:
        if record.is_degraded:
            if not self._settings.cache_degraded:
                return None
            return self._settings.degraded_ttl_seconds or self._settings.cache_ttl_seconds
        if record.source == self._fetcher.primary_source:
            return self._settings.cache_ttl_seconds
        return self._settings.fallback_ttl_seconds

    async def get_quote(self, symbol: str) -> QuoteRecord:
        normalized = normalize_symbol(symbol)
        key = stock_cache_key(normalized)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache hit for %s", key)
            return cached

        async def produce() -> QuoteRecord:
            record = await self._fetcher.fetch_quote(normalized)
            ttl = self.ttl_for(record)
            if ttl:
                self._cache.set(key, record, ttl)
            return record

        return await self._coalescer.resolve(key, produce)

    async def get_quotes(self, symbols: Sequence[str]) -> list[QuoteRecord]:
        return await self._batch.fetch_many(symbols)

    async def get_indices(self) -> list[IndexRecord]:
        return await self._indices.fetch_indices()


def build_providers(
    settings: Settings, client: httpx.AsyncClient
) -> tuple[list[QuoteProvider], list[IndexProvider]]:
    provider_settings = settings.providers
    yahoo = YahooFinanceClient(
        client,
        base_url=provider_settings.yahoo_base_url,
        symbol_suffix=provider_settings.yahoo_symbol_suffix,
        user_agent=settings.user_agent,
    )
    moneycontrol = MoneyControlClient(
        client,
        base_url=provider_settings.moneycontrol_base_url,
        user_agent=settings.user_agent,
    )
    finnhub = FinnhubClient(
        client,
        provider_settings.finnhub_api_key,
        base_url=provider_settings.finnhub_base_url,
    )
    quote_registry: dict[str, QuoteProvider] = {
        "yahoo": yahoo,
        "moneycontrol": moneycontrol,
        "finnhub": finnhub,
    }
    index_registry: dict[str, IndexProvider] = {
        "yahoo": yahoo,
        "moneycontrol": moneycontrol,
    }
    return (
        _select(quote_registry, settings.provider_priority, "provider_priority"),
        _select(index_registry, settings.index_provider_priority, "index_provider_priority"),
    )


def _select(registry: dict, names: Sequence[str], field: str) -> list:
    selected = []
    for name in names:
        key = name.strip().lower()
        if key not in registry:
            raise ValueError(f"Unknown provider {name!r} in {field}; expected one of {sorted(registry)}")
        selected.append(registry[key])
    return selected


def build_quote_service(
    settings: Settings,
    client: httpx.AsyncClient,
    *,
    quote_providers: Sequence[QuoteProvider] | None = None,
    index_providers: Sequence[IndexProvider] | None = None,
    cache: TTLCache | None = None,
) -> QuoteService:
    if quote_providers is None or index_providers is None:
        default_quotes, default_indices = build_providers(settings, client)
        quote_providers = default_quotes if quote_providers is None else quote_providers
        index_providers = default_indices if index_providers is None else index_providers

    if cache is None:
        cache = TTLCache(maxsize=settings.cache_maxsize)
    coalescer = RequestCoalescer()
    fetcher = FallbackFetcher(quote_providers, settings.provider_timeout_seconds)
    aggregator = IndexAggregator(
        index_providers,
        settings.market_index_symbols,
        cache,
        coalescer,
        ttl_seconds=settings.cache_ttl_seconds,
        timeout_seconds=settings.provider_timeout_seconds,
    )
    return QuoteService(fetcher, aggregator, cache, coalescer, settings)
