"""Cached price oracle with primary/fallback sources and bounded history.

Lookup order on every call:
  1. Fresh cache (younger than the TTL) is returned as-is, history untouched.
  2. Primary source, bounded by a timeout.
  3. Fallback source, same contract.
  4. Last cached sample regardless of age (degraded mode).
  5. PriceUnavailableError when nothing was ever cached.

Only a successful source fetch appends to the history. Each source gets one
attempt per call; there is no retry or backoff.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable
from decimal import Decimal

from arena.exceptions import PriceSourceError, PriceUnavailableError
from arena.logging import get_logger
from arena.market_data.sources import PriceSource
from arena.models import Indicators, PriceSample
from arena.signals.indicators import IndicatorEngine

logger = get_logger(__name__)


class PriceOracle:
    """Fetches, caches and records the tracked asset's price.

    Uses asyncio.Lock so concurrent callers (a tick and an API request)
    never fetch twice for the same expired cache.

    Args:
        primary: Source tried first.
        fallback: Source tried when the primary fails or times out.
        cache_ttl: Seconds a cached sample is served without refetching.
        timeout: Per-source fetch timeout in seconds.
        history_size: Maximum number of price samples kept.
        indicator_engine: Indicator calculator (defaults to EMA20/RSI14).
        clock: Time function, injectable for tests.
    """

    def __init__(
        self,
        primary: PriceSource,
        fallback: PriceSource | None = None,
        cache_ttl: float = 30.0,
        timeout: float = 10.0,
        history_size: int = 100,
        indicator_engine: IndicatorEngine | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._cache_ttl = cache_ttl
        self._timeout = timeout
        self._history: deque[Decimal] = deque(maxlen=history_size)
        self._indicator_engine = indicator_engine or IndicatorEngine()
        self._clock = clock
        self._cache: PriceSample | None = None
        self._cached_at: float = 0.0
        self._lock = asyncio.Lock()

    async def get_price(self) -> PriceSample:
        """Return the current price sample.

        Raises:
            PriceUnavailableError: If all sources failed and nothing is cached.
        """
        async with self._lock:
            if self._cache is not None and self._clock() - self._cached_at < self._cache_ttl:
                return self._cache

            for source in (self._primary, self._fallback):
                if source is None:
                    continue
                sample = await self._try_source(source)
                if sample is not None:
                    self._cache = sample
                    self._cached_at = self._clock()
                    self._history.append(sample.value)
                    return sample

            if self._cache is not None:
                logger.warning(
                    "price_sources_exhausted_serving_stale",
                    price=str(self._cache.value),
                    source=self._cache.source,
                    age_seconds=round(self._clock() - self._cached_at, 1),
                )
                return self._cache

            logger.error("price_unavailable")
            raise PriceUnavailableError("Unable to fetch price from any source")

    async def _try_source(self, source: PriceSource) -> PriceSample | None:
        """Attempt one fetch; a timeout counts the same as a failure."""
        try:
            sample = await asyncio.wait_for(source.fetch(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "price_source_timeout", source=source.name, timeout=self._timeout
            )
            return None
        except PriceSourceError as e:
            logger.warning("price_source_failed", source=source.name, error=str(e))
            return None
        except Exception as e:
            logger.warning(
                "price_source_error", source=source.name, error=str(e), exc_info=True
            )
            return None

        logger.debug("price_fetched", source=sample.source, price=str(sample.value))
        return sample

    def get_price_history(self) -> list[Decimal]:
        """Return a copy of the price history, oldest first."""
        return list(self._history)

    def get_latest_price(self) -> Decimal | None:
        """Return the last cached price without fetching, or None."""
        return self._cache.value if self._cache is not None else None

    def get_indicators(self) -> Indicators:
        """Compute indicators from a copy of the current history."""
        return self._indicator_engine.compute(self.get_price_history())

    async def close(self) -> None:
        """Close both price sources."""
        for source in (self._primary, self._fallback):
            if source is None:
                continue
            try:
                await source.close()
            except Exception as e:
                logger.warning("price_source_close_failed", source=source.name, error=str(e))
