import asyncio

from quotedesk.aggregation.batch import BatchOrchestrator
from quotedesk.schemas.quote import FETCH_FAILED_REASON, QuoteRecord


class FakeResolver:
    def __init__(self, delays: dict[str, float] | None = None, failing: set[str] | None = None) -> None:
        self.delays = delays or {}
        self.failing = failing or set()
        self.active = 0
        self.max_active = 0
        self.completed: list[str] = []

    async def __call__(self, symbol: str) -> QuoteRecord:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(symbol, 0.001))
            if symbol in self.failing:
                raise RuntimeError(f"boom {symbol}")
            self.completed.append(symbol)
            return QuoteRecord(symbol=symbol, price=1.0, source="fake")
        finally:
            self.active -= 1


def test_results_follow_input_order() -> None:
    resolver = FakeResolver(delays={"A": 0.05, "B": 0.001, "C": 0.02})

    async def scenario() -> list[QuoteRecord]:
        orchestrator = BatchOrchestrator(resolver, limit=5)
        return await orchestrator.fetch_many(["A", "B", "A", "C"])

    records = asyncio.run(scenario())

    assert [record.symbol for record in records] == ["A", "B", "A", "C"]
    assert resolver.completed[0] == "B"


def test_one_failure_does_not_abort_batch() -> None:
    resolver = FakeResolver(failing={"BAD"})

    async def scenario() -> list[QuoteRecord]:
        orchestrator = BatchOrchestrator(resolver, limit=2)
        return await orchestrator.fetch_many(["A", "BAD", "B", "C"])

    records = asyncio.run(scenario())

    assert [record.symbol for record in records] == ["A", "BAD", "B", "C"]
    assert records[1].error_reason == FETCH_FAILED_REASON
    assert records[1].price is None
    assert all(record.price == 1.0 for index, record in enumerate(records) if index != 1)


def test_concurrency_is_bounded() -> None:
    resolver = FakeResolver(delays={symbol: 0.01 for symbol in "ABCDEFGHIJ"})

    async def scenario() -> list[QuoteRecord]:
        orchestrator = BatchOrchestrator(resolver, limit=3)
        return await orchestrator.fetch_many(list("ABCDEFGHIJ"))

    records = asyncio.run(scenario())

    assert len(records) == 10
    assert resolver.max_active == 3


def test_failed_position_reports_normalized_symbol() -> None:
    resolver = FakeResolver(failing={" tcs "})

    async def scenario() -> list[QuoteRecord]:
        orchestrator = BatchOrchestrator(resolver)
        return await orchestrator.fetch_many([" tcs "])

    records = asyncio.run(scenario())

    assert records[0].symbol == "TCS"
    assert records[0].is_degraded


def test_empty_batch_returns_empty_list() -> None:
    async def scenario() -> list[QuoteRecord]:
        orchestrator = BatchOrchestrator(FakeResolver())
        return await orchestrator.fetch_many([])

    assert asyncio.run(scenario()) == []
