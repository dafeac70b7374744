"""Trading strategies -- the decision contract and its built-in variants."""

from arena.strategies.base import Strategy
from arena.strategies.dca import DCAStrategy
from arena.strategies.external import ExternalProviderStrategy
from arena.strategies.factory import StrategyFactory
from arena.strategies.mean_reversion import MeanReversionStrategy
from arena.strategies.momentum import MomentumStrategy

__all__ = [
    "DCAStrategy",
    "ExternalProviderStrategy",
    "MeanReversionStrategy",
    "MomentumStrategy",
    "Strategy",
    "StrategyFactory",
]
