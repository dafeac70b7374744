"""Tests for StrategyFactory lookup and extension."""

from decimal import Decimal

import pytest

from arena.exceptions import UnknownStrategyError
from arena.models import Indicators, Portfolio, TradeDecision
from arena.strategies import (
    DCAStrategy,
    ExternalProviderStrategy,
    MeanReversionStrategy,
    MomentumStrategy,
    Strategy,
)
from arena.strategies.factory import StrategyFactory


def test_builds_each_builtin_kind(strategy_factory: StrategyFactory) -> None:
    assert isinstance(strategy_factory.create("momentum", "a"), MomentumStrategy)
    assert isinstance(strategy_factory.create("dca", "b"), DCAStrategy)
    assert isinstance(strategy_factory.create("mean_reversion", "c"), MeanReversionStrategy)
    assert isinstance(strategy_factory.create("external", "d"), ExternalProviderStrategy)


def test_each_agent_gets_fresh_instance(strategy_factory: StrategyFactory) -> None:
    assert strategy_factory.create("momentum", "a") is not strategy_factory.create(
        "momentum", "b"
    )


def test_unknown_kind_fails_closed(strategy_factory: StrategyFactory) -> None:
    with pytest.raises(UnknownStrategyError, match="Unknown strategy type: scalper"):
        strategy_factory.validate("scalper")
    with pytest.raises(UnknownStrategyError):
        strategy_factory.create("scalper", "a")


def test_register_custom_kind(strategy_factory: StrategyFactory) -> None:
    class AlwaysHold(Strategy):
        kind = "always_hold"

        async def decide(self, current_price, portfolio, indicators) -> TradeDecision:
            return TradeDecision.hold("never trade")

    strategy_factory.register("always_hold", lambda _agent_id: AlwaysHold())

    assert "always_hold" in strategy_factory.available_kinds()
    assert isinstance(strategy_factory.create("always_hold", "x"), AlwaysHold)


@pytest.mark.asyncio
async def test_created_strategies_share_decide_contract(
    strategy_factory: StrategyFactory,
) -> None:
    portfolio = Portfolio(cash=Decimal("1000"), asset=Decimal("0"))
    for kind in ("momentum", "dca", "mean_reversion", "external"):
        strategy = strategy_factory.create(kind, f"agent-{kind}")
        decision = await strategy.decide(Decimal("30"), portfolio, Indicators())
        assert isinstance(decision, TradeDecision)
