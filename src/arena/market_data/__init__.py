"""Market data layer -- price sources, caching oracle and price history."""

from arena.market_data.price_oracle import PriceOracle
from arena.market_data.sources import (
    CoinGeckoSource,
    ExchangeTickerSource,
    MultiversXSource,
    PriceSource,
    build_price_source,
)

__all__ = [
    "CoinGeckoSource",
    "ExchangeTickerSource",
    "MultiversXSource",
    "PriceOracle",
    "PriceSource",
    "build_price_source",
]
