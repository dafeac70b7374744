"""EMA crossover momentum strategy.

Buys half the cash when price crosses above the EMA20 and sells half the
asset when it crosses below. A crossing is a change versus this strategy's
own above/below state from its previous tick, so staying above the EMA after
a cross never triggers another buy. The first tick with data only records the
baseline.
"""

from decimal import Decimal

from arena.models import Indicators, Portfolio, TradeAction, TradeDecision
from arena.strategies.base import MIN_ASSET_TO_TRADE, MIN_CASH_TO_TRADE, Strategy


class MomentumStrategy(Strategy):
    """EMA20 crossover strategy trading 50% of the available balance."""

    name = "MomentumMax"
    kind = "momentum"

    def __init__(self, trade_percentage: Decimal = Decimal("0.5")) -> None:
        super().__init__()
        self._trade_percentage = trade_percentage
        self._previous_above_ema: bool | None = None

    async def decide(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> TradeDecision:
        self._increment_tick()

        ema20 = indicators.ema20
        if ema20 is None or indicators.previous_price is None:
            return TradeDecision.hold("Insufficient data for EMA calculation")

        above = current_price > ema20

        if self._previous_above_ema is None:
            self._previous_above_ema = above
            return TradeDecision.hold("Establishing baseline")

        crossed_above = above and not self._previous_above_ema
        crossed_below = not above and self._previous_above_ema
        self._previous_above_ema = above

        if crossed_above and portfolio.cash > MIN_CASH_TO_TRADE:
            return TradeDecision(
                action=TradeAction.BUY,
                percentage=self._trade_percentage,
                reason=f"Price crossed above EMA20 (${ema20:.2f}), bullish momentum",
            )

        if crossed_below and portfolio.asset > MIN_ASSET_TO_TRADE:
            return TradeDecision(
                action=TradeAction.SELL,
                percentage=self._trade_percentage,
                reason=f"Price crossed below EMA20 (${ema20:.2f}), bearish momentum",
            )

        position = "above" if above else "below"
        return TradeDecision.hold(
            f"Price (${current_price:.2f}) {position} EMA20 (${ema20:.2f}), no crossover"
        )

    def reset(self) -> None:
        super().reset()
        self._previous_above_ema = None
