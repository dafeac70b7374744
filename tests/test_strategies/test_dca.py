"""Tests for DCAStrategy scheduled buys."""

from decimal import Decimal

import pytest

from arena.models import Indicators, Portfolio, TradeAction
from arena.strategies.dca import DCAStrategy

PRICE = Decimal("30")


async def _run_ticks(strategy: DCAStrategy, portfolio: Portfolio, n: int):
    decisions = []
    for _ in range(n):
        decisions.append(await strategy.decide(PRICE, portfolio, Indicators()))
    return decisions


@pytest.mark.asyncio
async def test_buys_every_tenth_tick() -> None:
    strategy = DCAStrategy()
    portfolio = Portfolio(cash=Decimal("1000"), asset=Decimal("0"))

    decisions = await _run_ticks(strategy, portfolio, 20)

    buy_ticks = [i + 1 for i, d in enumerate(decisions) if d.action == TradeAction.BUY]
    assert buy_ticks == [10, 20]
    assert decisions[9].fixed_amount == Decimal("50")


@pytest.mark.asyncio
async def test_waiting_reason_counts_down() -> None:
    strategy = DCAStrategy()
    portfolio = Portfolio(cash=Decimal("1000"), asset=Decimal("0"))

    decisions = await _run_ticks(strategy, portfolio, 3)

    assert decisions[0].reason == "Waiting for next DCA interval (9 ticks remaining)"
    assert decisions[2].reason == "Waiting for next DCA interval (7 ticks remaining)"


@pytest.mark.asyncio
async def test_low_cash_spends_ninety_percent() -> None:
    strategy = DCAStrategy(trade_interval=1)
    portfolio = Portfolio(cash=Decimal("40"), asset=Decimal("0"))

    decision = await strategy.decide(PRICE, portfolio, Indicators())

    assert decision.action == TradeAction.BUY
    assert decision.fixed_amount == Decimal("36.0")


@pytest.mark.asyncio
async def test_below_minimum_cash_holds() -> None:
    strategy = DCAStrategy(trade_interval=1)
    portfolio = Portfolio(cash=Decimal("9.99"), asset=Decimal("3"))

    decision = await strategy.decide(PRICE, portfolio, Indicators())

    assert decision.action == TradeAction.HOLD
    assert "Insufficient cash" in decision.reason


@pytest.mark.asyncio
async def test_reset_restarts_schedule() -> None:
    strategy = DCAStrategy()
    portfolio = Portfolio(cash=Decimal("1000"), asset=Decimal("0"))
    await _run_ticks(strategy, portfolio, 9)

    strategy.reset()
    decision = await strategy.decide(PRICE, portfolio, Indicators())

    assert decision.action == TradeAction.HOLD
