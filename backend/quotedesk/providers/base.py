from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

import httpx

from quotedesk.errors import ProviderError
from quotedesk.schemas.quote import IndexRecord, QuoteRecord


@runtime_checkable
class QuoteProvider(Protocol):
    name: str

    async def fetch_quote(self, symbol: str) -> QuoteRecord: ...


@runtime_checkable
class IndexProvider(Protocol):
    name: str

    async def fetch_indices(self, indices: Mapping[str, str]) -> list[IndexRecord]: ...


async def get_response(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    try:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = "rate_limited" if exc.response.status_code == 429 else "error"
        raise ProviderError(provider, status, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(provider, "error", str(exc) or type(exc).__name__) from exc
    return response


async def get_json(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    *,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> object:
    response = await get_response(client, provider, url, params=params, headers=headers)
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(provider, "invalid_response", "Response is not JSON") from exc


def to_float(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.replace(",", "").replace("+", "").strip("()% \t\n")
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None
