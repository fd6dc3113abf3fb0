"""
Market Data Source

Fetches the current quote and the recent intraday series for one symbol.
Provider responses are cached for a short TTL, and any provider failure
(transport error, non-2xx status, unexpected payload) is logged and
answered with synthetic data instead of being raised to the caller.
"""

from __future__ import annotations

import asyncio
import dataclasses
from typing import List, Optional

import httpx
import numpy as np

from stock_tracker.config.settings import MarketDataConfig
from stock_tracker.data.models import Quote, SeriesPoint, SeriesResult
from stock_tracker.data.providers import QuoteProvider, build_provider
from stock_tracker.data.synthetic import synthetic_quote, synthetic_series
from stock_tracker.errors import MalformedPayloadError, ProviderError
from stock_tracker.monitoring.error_logging import ErrorComponent, ErrorLogger, FallbackReason
from stock_tracker.utils.cache_manager import QuoteCache
from stock_tracker.utils.logger import get_logger

QUOTE = "quote"
SERIES = "series"
DEFAULT_POINT_COUNT = 20


def _fallback_reason(exc: BaseException) -> FallbackReason:
    if isinstance(exc, MalformedPayloadError):
        return FallbackReason.MALFORMED_PAYLOAD
    if isinstance(exc.__cause__, httpx.TimeoutException):
        return FallbackReason.TIMEOUT
    if isinstance(exc, ProviderError):
        return FallbackReason.PROVIDER_UNAVAILABLE
    return FallbackReason.UNKNOWN


class MarketDataSource:
    """
    Quote and series access with caching and synthetic fallback.

    Attributes:
        config (MarketDataConfig): Provider selection, keys, mock mode, timeouts.
        cache (QuoteCache): Shared cache; written only after a successful provider call.
        provider (QuoteProvider): Vendor adapter used for real fetches.
    """

    def __init__(
        self,
        config: Optional[MarketDataConfig] = None,
        cache: Optional[QuoteCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        provider: Optional[QuoteProvider] = None,
        rng: Optional[np.random.Generator] = None,
        error_logger: Optional[ErrorLogger] = None,
    ):
        """
        Args:
            config (MarketDataConfig, optional): Defaults to MarketDataConfig().
            cache (QuoteCache, optional): Defaults to a cache using ``config.cache_ttl_seconds``.
            client (httpx.AsyncClient, optional): Shared HTTP client. If omitted one is
                created on first use and closed by ``aclose``.
            provider (QuoteProvider, optional): Overrides the provider named in config.
            rng (np.random.Generator, optional): Source of synthetic randomness.
            error_logger (ErrorLogger, optional): Receives every fallback event.
        """
        self.config = config or MarketDataConfig()
        self.cache = cache or QuoteCache(ttl_seconds=self.config.cache_ttl_seconds)
        self.provider = provider or build_provider(
            self.config.provider, self.config.active_provider, interval=self.config.intraday_interval
        )
        self.rng = rng or np.random.default_rng()
        self.errors = error_logger or ErrorLogger(component=ErrorComponent.MARKET_DATA)
        self.logger = get_logger(f"stock_tracker.{self.__class__.__name__}")

        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> MarketDataSource:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ---------------------
    # Quotes
    # ---------------------
    async def fetch_quote(self, symbol: str) -> Quote:
        """
        Current quote for ``symbol``. Never raises for provider problems.

        Args:
            symbol (str): Ticker; echoed unchanged in the returned Quote.

        Returns:
            Quote: Cached, live, or synthetic quote.
        """
        if self.config.use_mock:
            self._log_mock(symbol, QUOTE)
            return await self._synthetic_quote(symbol)

        key = self.cache.make_key(symbol, QUOTE)
        entry = self.cache.get(key)
        if entry is not None and isinstance(entry.data, Quote):
            return dataclasses.replace(entry.data, symbol=symbol)

        try:
            quote = await self.provider.fetch_quote(self._get_client(), symbol)
        except Exception as exc:
            self.errors.log_fallback(
                reason=_fallback_reason(exc),
                exception=exc,
                context={"symbol": symbol, "kind": QUOTE, "provider": self.provider.name},
            )
            return await self._synthetic_quote(symbol)

        self.cache.put(key, quote)
        return quote

    # ---------------------
    # Series
    # ---------------------
    async def fetch_series(self, symbol: str, point_count: int = DEFAULT_POINT_COUNT) -> List[SeriesPoint]:
        """
        The ``point_count + 1`` most recent closes for ``symbol``, ascending by time.

        Args:
            symbol (str): Ticker to fetch.
            point_count (int): Number of intervals covered by the series.

        Returns:
            List[SeriesPoint]: Points with ``actual`` set and ``predicted`` unset.
        """
        result = await self.fetch_series_result(symbol, point_count)
        return result.points

    async def fetch_series_result(self, symbol: str, point_count: int = DEFAULT_POINT_COUNT) -> SeriesResult:
        """
        Same as ``fetch_series`` but also reports whether the points came
        from the provider (``live``) or were generated.
        """
        if point_count < 0:
            raise ValueError(f"point_count must be >= 0, got {point_count}")
        wanted = point_count + 1

        if self.config.use_mock:
            self._log_mock(symbol, SERIES)
            return SeriesResult(await self._synthetic_series(symbol, point_count), live=False)

        key = self.cache.make_key(symbol, SERIES)
        entry = self.cache.get(key)
        if entry is not None and isinstance(entry.data, list) and len(entry.data) >= wanted:
            return SeriesResult(list(entry.data[-wanted:]), live=True)

        try:
            points = await self.provider.fetch_series(self._get_client(), symbol)
            if len(points) < wanted:
                raise MalformedPayloadError(
                    symbol, f"{self.provider.name} returned {len(points)} bars for {symbol}, need {wanted}"
                )
        except Exception as exc:
            self.errors.log_fallback(
                reason=_fallback_reason(exc),
                exception=exc,
                context={"symbol": symbol, "kind": SERIES, "provider": self.provider.name},
            )
            return SeriesResult(await self._synthetic_series(symbol, point_count), live=False)

        self.cache.put(key, points)
        return SeriesResult(list(points[-wanted:]), live=True)

    # ---------------------
    # Synthetic fallback
    # ---------------------
    def _log_mock(self, symbol: str, kind: str) -> None:
        self.errors.log_fallback(
            reason=FallbackReason.MOCK_MODE,
            context={"symbol": symbol, "kind": kind},
            fallback_action="Mock mode, serving synthetic data",
        )

    async def _synthetic_quote(self, symbol: str) -> Quote:
        await asyncio.sleep(self.config.mock_latency_seconds)
        self.logger.debug(f"Serving synthetic quote for {symbol}")
        return synthetic_quote(symbol, self.rng)

    async def _synthetic_series(self, symbol: str, point_count: int) -> List[SeriesPoint]:
        await asyncio.sleep(self.config.mock_latency_seconds)
        self.logger.debug(f"Serving synthetic series for {symbol} ({point_count + 1} points)")
        return synthetic_series(symbol, point_count, self.rng)
