from quotedesk.config.settings import Settings


def test_defaults() -> None:
    settings = Settings()

    assert settings.cache_ttl_seconds == 300
    assert settings.fallback_ttl_seconds == 150
    assert settings.batch_concurrency == 5
    assert settings.provider_priority == ["yahoo", "moneycontrol", "finnhub"]
    assert "^NSEI" in settings.market_index_symbols.values()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("QUOTEDESK_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("QUOTEDESK_FALLBACK_TTL_FACTOR", "0.25")
    monkeypatch.setenv("QUOTEDESK_PROVIDER_PRIORITY", '["moneycontrol", "yahoo"]')
    monkeypatch.setenv("QUOTEDESK_FINNHUB_API_KEY", "abc")

    settings = Settings()

    assert settings.fallback_ttl_seconds == 15
    assert settings.provider_priority == ["moneycontrol", "yahoo"]
    assert settings.providers.finnhub_api_key == "abc"


def test_log_level_alias(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert Settings().log_level == "debug"
