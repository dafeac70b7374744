"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

PriceSourceName = Literal["coingecko", "multiversx", "exchange"]


class PriceFeedSettings(BaseSettings):
    """Price source selection, caching and history parameters."""

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    primary_source: PriceSourceName = "coingecko"
    fallback_source: PriceSourceName = "multiversx"
    cache_ttl_seconds: float = 30.0
    request_timeout_seconds: float = 10.0
    history_size: int = 100

    # CoinGecko
    coingecko_coin_id: str = "elrond-erd-2"
    coingecko_api_key: SecretStr = SecretStr("")

    # MultiversX public API (economics endpoint carries the EGLD price)
    multiversx_api_url: str = "https://testnet-api.multiversx.com"

    # ccxt exchange ticker
    exchange_id: str = "binance"
    exchange_symbol: str = "EGLD/USDT"


class TournamentSettings(BaseSettings):
    """Tournament simulation parameters."""

    model_config = SettingsConfigDict(env_prefix="TOURNAMENT_")

    initial_balance: Decimal = Decimal("1000")  # USDC per agent
    tick_interval_seconds: float = 60.0
    slippage: Decimal = Decimal("0.003")  # 0.3% simulated market impact
    ema_period: int = 20
    rsi_period: int = 14
    logs_dir: str = "./logs"  # empty string keeps the audit log in memory only
    auto_start: bool = False


class LeaderboardSettings(BaseSettings):
    """Leaderboard caching and broadcast configuration."""

    model_config = SettingsConfigDict(env_prefix="LEADERBOARD_")

    cache_ttl_seconds: float = 10.0
    broadcast_interval_seconds: float = 600.0  # 10 minutes


class LLMSettings(BaseSettings):
    """Language-model decision provider settings.

    Without an API key the external strategy runs its RSI fallback only.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    api_key: SecretStr = SecretStr("")
    model: str = "claude-3-5-haiku-latest"
    characters_dir: str = "agents/characters"
    temperature: float = 0.3
    max_tokens: int = 256
    timeout_seconds: float = 20.0


class DashboardSettings(BaseSettings):
    """HTTP/WebSocket server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 3001
    enabled: bool = True
    price_broadcast_interval_seconds: float = 30.0


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    price: PriceFeedSettings = PriceFeedSettings()
    tournament: TournamentSettings = TournamentSettings()
    leaderboard: LeaderboardSettings = LeaderboardSettings()
    llm: LLMSettings = LLMSettings()
    dashboard: DashboardSettings = DashboardSettings()
