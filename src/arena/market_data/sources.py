"""Price sources for the tracked asset.

Each source performs exactly one fetch per call and either returns a
PriceSample or raises PriceSourceError. Timeouts and fallback ordering are the
PriceOracle's concern, not the source's.

HTTP sources use urllib.request (stdlib) in a worker thread; the exchange
source goes through ccxt async.
"""

import asyncio
import json
import time
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any

import ccxt.async_support as ccxt_async

from arena.config import PriceFeedSettings
from arena.exceptions import PriceSourceError
from arena.logging import get_logger
from arena.models import PriceSample

logger = get_logger(__name__)

COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"

_HEADERS = {"Accept": "application/json", "User-Agent": "ArenaTournament/1.0"}


def _parse_price(raw: Any, source: str) -> Decimal:
    """Convert a raw JSON price to a positive Decimal or raise PriceSourceError."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise PriceSourceError(f"Invalid {source} response: price={raw!r}")
    try:
        price = Decimal(str(raw))
    except InvalidOperation as e:
        raise PriceSourceError(f"Invalid {source} response: price={raw!r}") from e
    if not price.is_finite() or price <= 0:
        raise PriceSourceError(f"Invalid {source} response: price={raw!r}")
    return price


def _get_json(url: str, headers: dict[str, str], timeout: float) -> Any:
    """Blocking GET returning decoded JSON."""
    req = urllib.request.Request(url, headers=headers)
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return json.loads(resp.read())


class PriceSource(ABC):
    """Abstract base class for a single price source."""

    #: Tag stamped on every PriceSample this source produces.
    name: str = "unknown"

    @abstractmethod
    async def fetch(self) -> PriceSample:
        """Fetch the current price once.

        Raises:
            PriceSourceError: If the response is missing or not a positive number.
        """
        ...

    async def close(self) -> None:
        """Release network resources, if any."""
        return None


class HttpJsonSource(PriceSource):
    """Base for sources that read one JSON document over HTTP."""

    def __init__(self, timeout: float = 10.0) -> None:
        self._timeout = timeout

    async def _fetch_json(self, url: str, headers: dict[str, str]) -> Any:
        try:
            return await asyncio.to_thread(_get_json, url, headers, self._timeout)
        except (OSError, ValueError) as e:
            raise PriceSourceError(f"{self.name} request failed: {e}") from e


class CoinGeckoSource(HttpJsonSource):
    """CoinGecko simple/price endpoint.

    Args:
        coin_id: CoinGecko coin id (e.g., "elrond-erd-2").
        api_key: Optional demo API key for higher rate limits.
        timeout: Socket timeout in seconds.
    """

    name = "coingecko"

    def __init__(self, coin_id: str, api_key: str = "", timeout: float = 10.0) -> None:
        super().__init__(timeout)
        self._coin_id = coin_id
        self._api_key = api_key

    async def fetch(self) -> PriceSample:
        query = urllib.parse.urlencode({"ids": self._coin_id, "vs_currencies": "usd"})
        headers = dict(_HEADERS)
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key

        data = await self._fetch_json(f"{COINGECKO_URL}?{query}", headers)
        coin = data.get(self._coin_id) if isinstance(data, dict) else None
        raw = coin.get("usd") if isinstance(coin, dict) else None
        return PriceSample(
            value=_parse_price(raw, self.name),
            timestamp=time.time(),
            source=self.name,
        )


class MultiversXSource(HttpJsonSource):
    """MultiversX public API ``/economics`` endpoint (EGLD price in USD)."""

    name = "multiversx"

    def __init__(self, api_url: str, timeout: float = 10.0) -> None:
        super().__init__(timeout)
        self._api_url = api_url.rstrip("/")

    async def fetch(self) -> PriceSample:
        data = await self._fetch_json(f"{self._api_url}/economics", dict(_HEADERS))
        raw = data.get("price") if isinstance(data, dict) else None
        return PriceSample(
            value=_parse_price(raw, self.name),
            timestamp=time.time(),
            source=self.name,
        )


class ExchangeTickerSource(PriceSource):
    """Last traded price from a ccxt exchange ticker.

    Args:
        exchange_id: ccxt exchange id (e.g., "binance").
        symbol: Market symbol (e.g., "EGLD/USDT").
        exchange: Pre-built ccxt async exchange (tests inject a mock).
    """

    def __init__(
        self,
        exchange_id: str,
        symbol: str,
        exchange: Any | None = None,
    ) -> None:
        self._symbol = symbol
        self.name = f"exchange:{exchange_id}"
        if exchange is None:
            exchange_cls = getattr(ccxt_async, exchange_id, None)
            if exchange_cls is None:
                raise ValueError(f"Unknown ccxt exchange: {exchange_id}")
            exchange = exchange_cls({"enableRateLimit": True})
        self._exchange = exchange

    async def fetch(self) -> PriceSample:
        try:
            ticker = await self._exchange.fetch_ticker(self._symbol)
        except ccxt_async.BaseError as e:
            raise PriceSourceError(f"{self.name} ticker failed: {e}") from e
        raw = ticker.get("last") if isinstance(ticker, dict) else None
        return PriceSample(
            value=_parse_price(raw, self.name),
            timestamp=time.time(),
            source=self.name,
        )

    async def close(self) -> None:
        """Clean up ccxt async resources."""
        await self._exchange.close()


def build_price_source(name: str, settings: PriceFeedSettings) -> PriceSource:
    """Construct a configured price source by name.

    Raises:
        ValueError: If ``name`` is not a known source.
    """
    timeout = settings.request_timeout_seconds
    if name == "coingecko":
        return CoinGeckoSource(
            coin_id=settings.coingecko_coin_id,
            api_key=settings.coingecko_api_key.get_secret_value(),
            timeout=timeout,
        )
    if name == "multiversx":
        return MultiversXSource(settings.multiversx_api_url, timeout=timeout)
    if name == "exchange":
        return ExchangeTickerSource(settings.exchange_id, settings.exchange_symbol)
    raise ValueError(f"Unknown price source: {name}")
