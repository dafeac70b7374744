"""Abstract strategy interface.

Defines the decision contract every tournament agent implements. Built-in
rule strategies and the external language-model provider share it, so the
scheduler never branches on strategy type.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from arena.models import Indicators, Portfolio, TradeDecision

#: Minimum cash a strategy needs before proposing a buy.
MIN_CASH_TO_TRADE = Decimal("10")

#: Minimum asset a strategy needs before proposing a sell.
MIN_ASSET_TO_TRADE = Decimal("0.01")


class Strategy(ABC):
    """Abstract base class for trading strategies.

    Strategies only propose decisions; the PortfolioLedger is the sole owner
    of balance changes. ``tick_count`` counts decide() calls since
    construction or the last reset().
    """

    name: str = "Strategy"
    kind: str = "base"

    def __init__(self) -> None:
        self.tick_count = 0

    @abstractmethod
    async def decide(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> TradeDecision:
        """Return a buy/sell/hold decision for this tick.

        Args:
            current_price: Current asset price in cash units.
            portfolio: Snapshot of the agent's balances (read-only).
            indicators: Shared indicator snapshot for the tick.

        Returns:
            TradeDecision with an advisory reason string.
        """
        ...

    def reset(self) -> None:
        """Clear tick-local state, e.g. for a new tournament run."""
        self.tick_count = 0

    def _increment_tick(self) -> None:
        self.tick_count += 1
