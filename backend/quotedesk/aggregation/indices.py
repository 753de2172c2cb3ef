from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Sequence

from quotedesk.aggregation.coalescer import RequestCoalescer
from quotedesk.cache import INDICES_CACHE_KEY, TTLCache
from quotedesk.errors import IndicesUnavailableError, ProviderError
from quotedesk.providers.base import IndexProvider
from quotedesk.schemas.quote import IndexRecord, is_number


logger = logging.getLogger(__name__)


class IndexAggregator:
    """Fetch the configured market indices behind one shared cache entry.

    Indices that a provider could not price are dropped from its list. The
    first provider with at least one usable index wins; an empty result is
    never cached, so the next call tries the providers again.
    """

    def __init__(
        self,
        providers: Sequence[IndexProvider],
        indices: Mapping[str, str],
        cache: TTLCache,
        coalescer: RequestCoalescer,
        *,
        ttl_seconds: float,
        timeout_seconds: float,
    ) -> None:
        self._providers = list(providers)
        self._indices = dict(indices)
        self._cache = cache
        self._coalescer = coalescer
        self._ttl = ttl_seconds
        self._timeout = timeout_seconds

    async def fetch_indices(self) -> list[IndexRecord]:
        cached = self._cache.get(INDICES_CACHE_KEY)
        if cached is not None:
            return list(cached)
        records = await self._coalescer.resolve(INDICES_CACHE_KEY, self._fetch_and_store)
        return list(records)

    async def _from_provider(self, provider: IndexProvider) -> list[IndexRecord]:
        try:
            records = await asyncio.wait_for(provider.fetch_indices(self._indices), self._timeout)
        except asyncio.TimeoutError:
            logger.warning("%s indices timed out after %.1fs", provider.name, self._timeout)
            return []
        except ProviderError as exc:
            logger.warning("%s indices failed: %s (%s)", provider.name, exc.message, exc.status)
            return []
        except Exception:
            logger.exception("%s indices raised unexpectedly", provider.name)
            return []
        return [
            record
            for record in records or []
            if isinstance(record, IndexRecord) and is_number(record.value)
        ]

    async def _fetch_and_store(self) -> list[IndexRecord]:
        for provider in self._providers:
            records = await self._from_provider(provider)
            if records:
                self._cache.set(INDICES_CACHE_KEY, records, self._ttl)
                return records
            logger.info("%s returned no usable indices", provider.name)
        raise IndicesUnavailableError("Failed to get market indices")
