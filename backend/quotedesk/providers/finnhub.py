from __future__ import annotations

import httpx

from quotedesk.errors import ProviderError
from quotedesk.providers.base import get_json, to_float
from quotedesk.schemas.quote import QuoteRecord


_QUOTE_PATH = "/api/v1/quote"


class FinnhubClient:
    name = "Finnhub"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str | None,
        *,
        base_url: str = "https://finnhub.io",
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def fetch_quote(self, symbol: str) -> QuoteRecord:
        if not self._api_key:
            raise ProviderError(self.name, "missing_key", "No Finnhub API key configured")

        payload = await get_json(
            self._client,
            self.name,
            self._base_url + _QUOTE_PATH,
            params={"symbol": symbol, "token": self._api_key},
        )
        if not isinstance(payload, dict):
            raise ProviderError(self.name, "invalid_response", "Quote payload is not an object")

        # Unknown symbols come back as all-zero quotes rather than an error.
        current = to_float(payload.get("c"))
        previous = to_float(payload.get("pc"))
        if not current and not previous:
            raise ProviderError(self.name, "empty", f"No quote for {symbol}")

        return QuoteRecord(
            symbol=symbol,
            company_name=symbol,
            price=current,
            change=to_float(payload.get("d")),
            percent_change=to_float(payload.get("dp")),
            high=to_float(payload.get("h")),
            low=to_float(payload.get("l")),
            open=to_float(payload.get("o")),
            source=self.name,
        )
