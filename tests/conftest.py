"""Shared test fixtures for the tournament engine."""

import time
from decimal import Decimal

import pytest

from arena.audit.trade_log import TradeAuditLog
from arena.config import AppSettings, LLMSettings, TournamentSettings
from arena.exceptions import PriceSourceError
from arena.market_data.price_oracle import PriceOracle
from arena.market_data.sources import PriceSource
from arena.models import PriceSample
from arena.scheduler import TournamentScheduler
from arena.strategies.factory import StrategyFactory


class ScriptedSource(PriceSource):
    """In-memory price source returning queued prices; an exception in the queue is raised."""

    def __init__(self, name: str, prices: list | None = None) -> None:
        self.name = name
        self.prices = list(prices or [])
        self.calls = 0
        self.closed = False

    async def fetch(self) -> PriceSample:
        self.calls += 1
        if not self.prices:
            raise PriceSourceError(f"{self.name} has no price")
        item = self.prices.pop(0)
        if isinstance(item, Exception):
            raise item
        return PriceSample(value=Decimal(str(item)), timestamp=time.time(), source=self.name)

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced time function."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_settings(tmp_path) -> AppSettings:
    """Return AppSettings with test defaults (no API keys, audit log in tmp_path)."""
    return AppSettings(
        log_level="DEBUG",
        tournament=TournamentSettings(
            logs_dir=str(tmp_path / "logs"),
            tick_interval_seconds=60.0,
        ),
        llm=LLMSettings(
            api_key="",  # type: ignore[arg-type]
            characters_dir=str(tmp_path / "characters"),
        ),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def primary_source() -> ScriptedSource:
    return ScriptedSource("primary")


@pytest.fixture
def fallback_source() -> ScriptedSource:
    return ScriptedSource("fallback")


@pytest.fixture
def oracle(primary_source, fallback_source, clock) -> PriceOracle:
    """Oracle with cache_ttl=0 so every call reaches the sources."""
    return PriceOracle(
        primary=primary_source,
        fallback=fallback_source,
        cache_ttl=0,
        timeout=1.0,
        clock=clock,
    )


@pytest.fixture
def strategy_factory(mock_settings) -> StrategyFactory:
    return StrategyFactory(mock_settings.llm)


@pytest.fixture
def audit_log() -> TradeAuditLog:
    return TradeAuditLog()


@pytest.fixture
def scheduler(oracle, strategy_factory, audit_log) -> TournamentScheduler:
    return TournamentScheduler(
        oracle=oracle,
        strategy_factory=strategy_factory,
        audit_log=audit_log,
        initial_cash=Decimal("1000"),
        tick_interval=60.0,
    )


@pytest.fixture
def make_source():
    """Factory for ScriptedSource instances."""
    return ScriptedSource
