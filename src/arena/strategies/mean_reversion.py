"""RSI mean reversion strategy.

Buys 30% of cash when RSI14 is oversold (< 30) and sells 30% of the asset
when overbought (> 70). A threshold breach without enough balance holds with
an explanatory reason instead of trading a smaller size.
"""

from decimal import Decimal

from arena.models import Indicators, Portfolio, TradeAction, TradeDecision
from arena.strategies.base import MIN_ASSET_TO_TRADE, MIN_CASH_TO_TRADE, Strategy


class MeanReversionStrategy(Strategy):
    """Stateless RSI14 oversold/overbought strategy."""

    name = "MeanReverter"
    kind = "mean_reversion"

    def __init__(
        self,
        oversold_threshold: Decimal = Decimal("30"),
        overbought_threshold: Decimal = Decimal("70"),
        trade_percentage: Decimal = Decimal("0.3"),
    ) -> None:
        super().__init__()
        self._oversold = oversold_threshold
        self._overbought = overbought_threshold
        self._trade_percentage = trade_percentage

    async def decide(
        self,
        current_price: Decimal,
        portfolio: Portfolio,
        indicators: Indicators,
    ) -> TradeDecision:
        self._increment_tick()

        rsi = indicators.rsi14
        if rsi is None:
            return TradeDecision.hold("Insufficient data for RSI calculation")

        if rsi < self._oversold:
            if portfolio.cash <= MIN_CASH_TO_TRADE:
                return TradeDecision.hold(
                    f"RSI oversold ({rsi:.1f}) but insufficient cash"
                )
            return TradeDecision(
                action=TradeAction.BUY,
                percentage=self._trade_percentage,
                reason=(
                    f"RSI oversold at {rsi:.1f} (< {self._oversold}), "
                    "expecting reversal up"
                ),
            )

        if rsi > self._overbought:
            if portfolio.asset <= MIN_ASSET_TO_TRADE:
                return TradeDecision.hold(
                    f"RSI overbought ({rsi:.1f}) but no asset to sell"
                )
            return TradeDecision(
                action=TradeAction.SELL,
                percentage=self._trade_percentage,
                reason=(
                    f"RSI overbought at {rsi:.1f} (> {self._overbought}), "
                    "expecting reversal down"
                ),
            )

        return TradeDecision.hold(
            f"RSI neutral at {rsi:.1f} "
            f"(between {self._oversold} and {self._overbought})"
        )
