from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

from cachetools import TLRUCache


def stock_cache_key(symbol: str) -> str:
    return f"stock:{symbol}"


INDICES_CACHE_KEY = "indices"


class _Entry(NamedTuple):
    value: Any
    ttl_seconds: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class TTLCache:
    """In-process key/value store where every entry carries its own expiry.

    Backed by ``cachetools.TLRUCache``: expired entries are dropped on read and
    whenever the cache is written or sized, and once ``maxsize`` is reached the
    entry closest to expiry is evicted first.
    """

    def __init__(self, maxsize: int = 10_000, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=clock)

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = _Entry(value, ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        return len(self._entries.expire())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
