"""Dollar cost averaging strategy.

Buys a fixed cash amount every ``trade_interval`` ticks regardless of price.
When cash drops below the fixed amount it spends 90% of what is left, and it
stops once fewer than 10 cash units remain.
"""

from decimal import Decimal

from arena.models import Indicators, Portfolio, TradeAction, TradeDecision
from arena.strategies.base import MIN_CASH_TO_TRADE, Strategy

# Share of the remaining cash spent once it is below the fixed buy amount
_REMAINDER_FRACTION = Decimal("0.9")


class DCAStrategy(Strategy):
    """Scheduled fixed-amount buyer (every 10 ticks, 50 cash units)."""

    name = "DCABot"
    kind = "dca"

    def __init__(
        self,
        trade_interval: int = 10,
        buy_amount: Decimal = Decimal("50"),
    ) -> None:
        super().__init__()
        self._trade_interval = trade_interval
        self._buy_amount = buy_amount

    async def decide(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> TradeDecision:
        self._increment_tick()

        remainder = self.tick_count % self._trade_interval
        if remainder != 0:
            ticks_until_buy = self._trade_interval - remainder
            return TradeDecision.hold(
                f"Waiting for next DCA interval ({ticks_until_buy} ticks remaining)"
            )

        if portfolio.cash < self._buy_amount:
            if portfolio.cash < MIN_CASH_TO_TRADE:
                return TradeDecision.hold(
                    f"Insufficient cash for DCA buy (< ${MIN_CASH_TO_TRADE})"
                )
            return TradeDecision(
                action=TradeAction.BUY,
                fixed_amount=portfolio.cash * _REMAINDER_FRACTION,
                reason=f"DCA buy with remaining funds (${portfolio.cash:.2f})",
            )

        return TradeDecision(
            action=TradeAction.BUY,
            fixed_amount=self._buy_amount,
            reason=f"DCA scheduled buy of ${self._buy_amount} at tick {self.tick_count}",
        )
