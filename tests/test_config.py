"""Tests for settings defaults and environment overrides."""

from decimal import Decimal

from arena.config import AppSettings, PriceFeedSettings, TournamentSettings


def test_defaults() -> None:
    settings = AppSettings()

    assert settings.tournament.initial_balance == Decimal("1000")
    assert settings.tournament.tick_interval_seconds == 60.0
    assert settings.tournament.slippage == Decimal("0.003")
    assert settings.price.cache_ttl_seconds == 30.0
    assert settings.price.history_size == 100
    assert settings.leaderboard.cache_ttl_seconds == 10.0
    assert settings.dashboard.port == 3001


def test_env_prefix_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TOURNAMENT_INITIAL_BALANCE", "2500")
    monkeypatch.setenv("PRICE_PRIMARY_SOURCE", "exchange")
    monkeypatch.setenv("PRICE_COINGECKO_API_KEY", "secret")

    tournament = TournamentSettings()
    price = PriceFeedSettings()

    assert tournament.initial_balance == Decimal("2500")
    assert price.primary_source == "exchange"
    assert price.coingecko_api_key.get_secret_value() == "secret"
    assert "secret" not in repr(price)
