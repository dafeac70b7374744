"""Technical indicators over the bounded price history.

EMA seeds with the simple mean of its first ``period`` samples and smooths the
rest; RSI uses plain average gain/loss over the last ``period + 1`` samples.
Both return None when the history is too short, never a guessed number.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

from arena.models import Indicators

#: Precision limit for EMA intermediate results (12 decimal places).
#: Prevents Decimal division from producing arbitrarily long representations.
_EMA_QUANTIZE = Decimal("0.000000000001")

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def compute_ema(values: Sequence[Decimal], period: int) -> Decimal | None:
    """Compute the Exponential Moving Average of ``values``.

    The first ``period`` values seed the average with their arithmetic mean,
    then every remaining value is folded in with:
        multiplier = 2 / (period + 1)
        ema = (value - ema) * multiplier + ema

    Args:
        values: Price samples ordered oldest first (the evaluated window).
        period: EMA period.

    Returns:
        The EMA as Decimal, or None if fewer than ``period`` values exist.
    """
    if period <= 0 or len(values) < period:
        return None

    multiplier = Decimal("2") / (Decimal(period) + Decimal("1"))

    ema = (sum(values[:period], _ZERO) / Decimal(period)).quantize(_EMA_QUANTIZE)
    for value in values[period:]:
        ema = ((value - ema) * multiplier + ema).quantize(_EMA_QUANTIZE)

    return ema


def compute_rsi(values: Sequence[Decimal], period: int) -> Decimal | None:
    """Compute the Relative Strength Index over the last ``period + 1`` values.

    Positive deltas are summed as gains and absolute negative deltas as
    losses, each averaged over ``period``. When the average loss is zero the
    RSI is exactly 100.

    Returns:
        RSI in [0, 100] as Decimal, or None if fewer than ``period + 1`` values.
    """
    if period <= 0 or len(values) < period + 1:
        return None

    window = values[-(period + 1):]
    gains = _ZERO
    losses = _ZERO
    for prev, curr in zip(window, window[1:]):
        change = curr - prev
        if change > 0:
            gains += change
        else:
            losses += -change

    avg_gain = gains / Decimal(period)
    avg_loss = losses / Decimal(period)

    if avg_loss == 0:
        return _HUNDRED

    rs = avg_gain / avg_loss
    return _HUNDRED - _HUNDRED / (Decimal("1") + rs)


def previous_price(values: Sequence[Decimal]) -> Decimal | None:
    """Return the sample immediately preceding the latest one."""
    if len(values) < 2:
        return None
    return values[-2]


class IndicatorEngine:
    """Derives the per-tick indicator snapshot from a price history.

    The EMA is evaluated over the most recent ``ema_period`` samples.

    Args:
        ema_period: EMA period (default 20).
        rsi_period: RSI period (default 14).
    """

    def __init__(self, ema_period: int = 20, rsi_period: int = 14) -> None:
        self._ema_period = ema_period
        self._rsi_period = rsi_period

    def compute(self, history: Sequence[Decimal]) -> Indicators:
        """Compute EMA, RSI and previous price from ``history`` (oldest first)."""
        values = list(history)
        return Indicators(
            ema20=compute_ema(values[-self._ema_period:], self._ema_period),
            rsi14=compute_rsi(values, self._rsi_period),
            previous_price=previous_price(values),
        )
