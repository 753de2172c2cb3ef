from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from quotedesk.errors import ProviderError
from quotedesk.providers.base import QuoteProvider
from quotedesk.schemas.quote import QuoteRecord, is_number


logger = logging.getLogger(__name__)


class FallbackFetcher:
    """Ask quote providers in priority order until one returns a price.

    Each attempt is bounded by ``timeout_seconds``; a provider that errors,
    times out or answers without a usable price is skipped. When every
    provider has been tried the caller gets a degraded record instead of an
    exception.
    """

    def __init__(self, providers: Sequence[QuoteProvider], timeout_seconds: float) -> None:
        if not providers:
            raise ValueError("FallbackFetcher needs at least one provider")
        self._providers = list(providers)
        self._timeout = timeout_seconds

    @property
    def primary_source(self) -> str:
        return self._providers[0].name

    async def _attempt(self, provider: QuoteProvider, symbol: str) -> QuoteRecord | None:
        try:
            record = await asyncio.wait_for(provider.fetch_quote(symbol), self._timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs for %s", provider.name, self._timeout, symbol)
            return None
        except ProviderError as exc:
            logger.warning("%s failed for %s: %s (%s)", provider.name, symbol, exc.message, exc.status)
            return None
        except Exception:
            logger.exception("%s raised unexpectedly for %s", provider.name, symbol)
            return None

        if not isinstance(record, QuoteRecord) or not is_number(record.price):
            logger.warning("%s returned no usable price for %s", provider.name, symbol)
            return None
        if record.source != provider.name:
            record = record.model_copy(update={"source": provider.name})
        return record

    async def fetch_quote(self, symbol: str) -> QuoteRecord:
        for position, provider in enumerate(self._providers):
            if position:
                logger.info("Falling back to %s for %s", provider.name, symbol)
            record = await self._attempt(provider, symbol)
            if record is not None:
                return record

        logger.warning("No provider produced a price for %s", symbol)
        return QuoteRecord.degraded(symbol)
