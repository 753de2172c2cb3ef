import asyncio

from quotedesk.errors import ProviderError
from quotedesk.providers.selector import FallbackFetcher
from quotedesk.schemas.quote import NO_SOURCE_REASON, QuoteRecord


class FakeProvider:
    def __init__(
        self,
        name: str,
        price: float | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        result: object = None,
    ) -> None:
        self.name = name
        self.price = price
        self.error = error
        self.delay = delay
        self.result = result
        self.calls: list[str] = []

    async def fetch_quote(self, symbol: str) -> QuoteRecord:
        self.calls.append(symbol)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result  # type: ignore[return-value]
        return QuoteRecord(symbol=symbol, company_name=symbol, price=self.price, source=self.name)


def test_skips_timeout_and_missing_price_in_priority_order() -> None:
    slow = FakeProvider("A", price=1.0, delay=1.0)
    priceless = FakeProvider("B", price=None)
    good = FakeProvider("C", price=42.5)
    fetcher = FallbackFetcher([slow, priceless, good], timeout_seconds=0.05)

    record = asyncio.run(fetcher.fetch_quote("INFY"))

    assert record.source == "C"
    assert record.price == 42.5
    assert slow.calls == priceless.calls == good.calls == ["INFY"]


def test_stops_at_first_usable_record() -> None:
    primary = FakeProvider("primary", price=10.0)
    secondary = FakeProvider("secondary", price=20.0)
    fetcher = FallbackFetcher([primary, secondary], timeout_seconds=1)

    record = asyncio.run(fetcher.fetch_quote("TCS"))

    assert record.source == "primary"
    assert secondary.calls == []
    assert fetcher.primary_source == "primary"


def test_exhaustion_returns_degraded_record() -> None:
    providers = [
        FakeProvider("A", error=ProviderError("A", "rate_limited")),
        FakeProvider("B", error=ValueError("parse blew up")),
        FakeProvider("C", price=None),
    ]
    fetcher = FallbackFetcher(providers, timeout_seconds=1)

    record = asyncio.run(fetcher.fetch_quote("ZZZZ"))

    assert record.is_degraded
    assert record.error_reason == NO_SOURCE_REASON
    assert record.price is None
    assert record.change is None
    assert record.symbol == "ZZZZ"
    assert record.company_name == "ZZZZ"
    assert record.source is None
    assert record.last_updated is not None


def test_zero_price_is_usable_but_nan_is_not() -> None:
    nan_provider = FakeProvider("nan", price=float("nan"))
    zero_provider = FakeProvider("zero", price=0.0)
    fetcher = FallbackFetcher([nan_provider, zero_provider], timeout_seconds=1)

    record = asyncio.run(fetcher.fetch_quote("PENNY"))

    assert record.source == "zero"
    assert record.price == 0.0


def test_wrong_result_type_is_rejected() -> None:
    broken = FakeProvider("broken", result={"price": 1.0})
    good = FakeProvider("good", price=3.0)
    fetcher = FallbackFetcher([broken, good], timeout_seconds=1)

    record = asyncio.run(fetcher.fetch_quote("X"))

    assert record.source == "good"


def test_source_is_stamped_with_provider_name() -> None:
    anonymous = FakeProvider("named", result=QuoteRecord(symbol="X", price=5.0))
    fetcher = FallbackFetcher([anonymous], timeout_seconds=1)

    record = asyncio.run(fetcher.fetch_quote("X"))

    assert record.source == "named"
