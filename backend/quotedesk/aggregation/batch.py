from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from quotedesk.schemas.quote import FETCH_FAILED_REASON, QuoteRecord


logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Resolve many symbols through a single-symbol path with bounded parallelism.

    Results are assembled by position, so output order always matches input
    order regardless of which lookups finish first. The semaphore lives on the
    instance, so the limit holds across concurrent batch calls as well.
    """

    def __init__(self, resolve: Callable[[str], Awaitable[QuoteRecord]], limit: int = 5) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self._resolve = resolve
        self._limit = limit
        self._slots = asyncio.Semaphore(limit)

    @property
    def limit(self) -> int:
        return self._limit

    async def _resolve_one(self, symbol: str) -> QuoteRecord:
        async with self._slots:
            return await self._resolve(symbol)

    async def fetch_many(self, symbols: Sequence[str]) -> list[QuoteRecord]:
        results = await asyncio.gather(
            *(self._resolve_one(symbol) for symbol in symbols), return_exceptions=True
        )
        records: list[QuoteRecord] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, QuoteRecord):
                records.append(result)
                continue
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            logger.warning("Batch lookup for %r failed: %r", symbol, result)
            records.append(
                QuoteRecord(
                    symbol=(symbol or "").strip().upper(),
                    error_reason=FETCH_FAILED_REASON,
                )
            )
        return records
