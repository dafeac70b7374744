"""Tests for the tournament logging processors and tick context."""

from decimal import Decimal

import pytest
import structlog

from arena.logging import stringify_decimals, tick_context
from arena.models import TradeDecision
from arena.scheduler import TournamentScheduler
from arena.strategies.base import Strategy


def test_decimals_render_as_plain_strings() -> None:
    event = {"event": "trade_executed", "price": Decimal("31.42"), "count": 3}

    result = stringify_decimals(None, "info", event)

    assert result == {"event": "trade_executed", "price": "31.42", "count": 3}


def test_tick_context_binds_and_unbinds() -> None:
    with tick_context(7):
        assert structlog.contextvars.get_contextvars()["tick"] == 7

    assert "tick" not in structlog.contextvars.get_contextvars()


def test_tick_context_unbinds_on_error() -> None:
    with pytest.raises(RuntimeError):
        with tick_context(2):
            raise RuntimeError("boom")

    assert "tick" not in structlog.contextvars.get_contextvars()


@pytest.mark.asyncio
async def test_agents_see_current_tick_number(
    oracle, strategy_factory, audit_log, primary_source
) -> None:
    seen: list[int] = []

    class TickReader(Strategy):
        async def decide(self, current_price, portfolio, indicators) -> TradeDecision:
            seen.append(structlog.contextvars.get_contextvars()["tick"])
            return TradeDecision.hold("reading")

    strategy_factory.register("tick_reader", lambda _agent_id: TickReader())
    scheduler = TournamentScheduler(oracle, strategy_factory, audit_log)
    scheduler.register_agent("a", "erd1", "tick_reader")
    scheduler.register_agent("b", "erd1", "tick_reader")
    primary_source.prices = ["30", "31"]

    await scheduler.tick()
    await scheduler.tick()

    assert seen == [1, 1, 2, 2]
    assert "tick" not in structlog.contextvars.get_contextvars()
