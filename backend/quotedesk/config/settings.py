from __future__ import annotations

from typing import Dict, List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUOTEDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
    finnhub_api_key: str | None = None
    yahoo_base_url: str = "https://query1.finance.yahoo.com"
    moneycontrol_base_url: str = "https://www.moneycontrol.com"
    finnhub_base_url: str = "https://finnhub.io"
    yahoo_symbol_suffix: str = ".NS"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUOTEDESK_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("log_level", "LOG_LEVEL", "QUOTEDESK_LOG_LEVEL"),
    )
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_maxsize: int = Field(default=10_000, ge=1)
    # Fallback-sourced quotes are less trusted and expire sooner.
    fallback_ttl_factor: float = Field(default=0.5, gt=0, le=1)
    cache_degraded: bool = True
    degraded_ttl_seconds: float | None = Field(default=None, gt=0)

    provider_timeout_seconds: float = Field(default=5.0, gt=0)
    batch_concurrency: int = Field(default=5, ge=1)

    provider_priority: List[str] = Field(
        default_factory=lambda: ["yahoo", "moneycontrol", "finnhub"]
    )
    index_provider_priority: List[str] = Field(
        default_factory=lambda: ["yahoo", "moneycontrol"]
    )
    market_index_symbols: Dict[str, str] = Field(
        default_factory=lambda: {
            "Nifty 50": "^NSEI",
            "Sensex": "^BSESN",
            "Nifty Midcap": "^NSMIDCP",
            "Nifty Bank": "^CNXBANK",
            "Nifty IT": "^CNXIT",
        }
    )
    user_agent: str = _DEFAULT_USER_AGENT

    providers: ProviderSettings = Field(default_factory=ProviderSettings)

    @property
    def fallback_ttl_seconds(self) -> float:
        return self.cache_ttl_seconds * self.fallback_ttl_factor


settings = Settings()
