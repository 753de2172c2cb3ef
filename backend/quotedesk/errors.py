from __future__ import annotations


class QuotedeskError(Exception):
    """Base class for errors raised by the quote aggregation layer."""


class ProviderError(QuotedeskError):
    """A single upstream provider could not produce a usable record."""

    def __init__(self, provider: str, status: str = "error", message: str | None = None) -> None:
        self.provider = provider
        self.status = status
        self.message = message or status
        super().__init__(f"{provider}: {self.message}")


class InvalidSymbolError(QuotedeskError, ValueError):
    pass


class IndicesUnavailableError(QuotedeskError):
    """No index provider produced a usable index and nothing is cached."""
