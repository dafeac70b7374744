"""Indicator computations feeding strategy decisions."""

from arena.signals.indicators import (
    IndicatorEngine,
    compute_ema,
    compute_rsi,
    previous_price,
)

__all__ = [
    "IndicatorEngine",
    "compute_ema",
    "compute_rsi",
    "previous_price",
]
