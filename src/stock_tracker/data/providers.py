# src/stock_tracker/data/providers.py
"""
Market data providers.

Each provider knows one vendor's two endpoints (current quote and intraday
bars) and turns their JSON into Quote / SeriesPoint records. Anything that
does not look like the documented payload raises MalformedPayloadError;
transport problems raise ProviderUnavailableError. Fallback decisions are
made by the caller (MarketDataSource), never here.
"""

import abc
import time
from typing import Any, Dict, List, Optional

import httpx
import pandas as pd

from stock_tracker.config.settings import ProviderConfig
from stock_tracker.data.models import Quote, SeriesPoint
from stock_tracker.errors import MalformedPayloadError, ProviderUnavailableError
from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _closes_to_points(closes: pd.Series) -> List[SeriesPoint]:
    """Ascending SeriesPoints from a Series of close prices on a tz-aware index."""
    closes = closes[closes.index.notna()].dropna()
    closes = closes[~closes.index.duplicated(keep="last")].sort_index()
    return [
        SeriesPoint.observed(int(round(ts.timestamp() * 1000)), float(price))
        for ts, price in closes.items()
    ]


class QuoteProvider(abc.ABC):
    """
    Abstract base class for market data providers.
    """

    name = "provider"

    def __init__(self, config: ProviderConfig, interval: str = "5min"):
        """
        Args:
            config (ProviderConfig): Base URL and API key for the vendor.
            interval (str): Intraday bar size, e.g. "5min".
        """
        self.config = config
        self.interval = interval

    @abc.abstractmethod
    async def fetch_quote(self, client: httpx.AsyncClient, symbol: str) -> Quote:
        """
        Fetch the current quote for ``symbol``.
        """

    @abc.abstractmethod
    async def fetch_series(self, client: httpx.AsyncClient, symbol: str) -> List[SeriesPoint]:
        """
        Fetch every intraday close the vendor returns, ascending by time.
        """

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Perform a GET request and return the decoded JSON object.

        Raises:
            ProviderUnavailableError: Missing API key, transport error or non-2xx status.
            MalformedPayloadError: Body is not a JSON object.
        """
        symbol = params.get("symbol", "")
        if not self.config.api_key:
            raise ProviderUnavailableError(symbol, f"No API key configured for {self.name}")

        try:
            logger.info(f"Requesting {self.name} data for {symbol}")
            response = await client.get(url, params=params)
            response.raise_for_status()  # Raise an error for HTTP 4xx/5xx responses
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(symbol, f"{self.name} request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedPayloadError(symbol, f"{self.name} returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise MalformedPayloadError(symbol, f"{self.name} returned {type(payload).__name__}, expected object")
        return payload


class AlphaVantageProvider(QuoteProvider):
    """GLOBAL_QUOTE and TIME_SERIES_INTRADAY endpoints."""

    name = "alpha_vantage"

    async def fetch_quote(self, client: httpx.AsyncClient, symbol: str) -> Quote:
        payload = await self._get_json(
            client,
            self.config.base_url,
            {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.config.api_key},
        )
        quote = payload.get("Global Quote")
        if not isinstance(quote, dict) or not quote:
            # Rate limiting and bad symbols come back as 200 with a "Note"/"Error Message"
            detail = payload.get("Note") or payload.get("Error Message") or payload.get("Information")
            raise MalformedPayloadError(symbol, f"No quote data for {symbol}: {detail or 'empty payload'}")

        try:
            price = float(quote["05. price"])
            volume = int(float(quote["06. volume"]))
            change = float(str(quote["10. change percent"]).strip().rstrip("%"))
            high = _optional_float(quote.get("03. high"))
            low = _optional_float(quote.get("04. low"))
            open_ = _optional_float(quote.get("02. open"))
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(symbol, f"Unexpected quote fields for {symbol}: {exc}") from exc

        if not price > 0:
            raise MalformedPayloadError(symbol, f"Non-positive price for {symbol}: {price}")

        return Quote(
            symbol=symbol,
            price=price,
            timestamp_millis=_now_millis(),
            volume=volume,
            change_percent=change,
            high=high,
            low=low,
            open=open_,
        )

    async def fetch_series(self, client: httpx.AsyncClient, symbol: str) -> List[SeriesPoint]:
        payload = await self._get_json(
            client,
            self.config.base_url,
            {
                "function": "TIME_SERIES_INTRADAY",
                "symbol": symbol,
                "interval": self.interval,
                "apikey": self.config.api_key,
            },
        )
        bars = payload.get(f"Time Series ({self.interval})")
        if not isinstance(bars, dict) or not bars:
            raise MalformedPayloadError(symbol, f"No historical data available for {symbol}")

        try:
            frame = pd.DataFrame.from_dict(bars, orient="index")
            closes = pd.to_numeric(frame["4. close"], errors="coerce")
            closes.index = pd.to_datetime(frame.index, errors="coerce")
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(symbol, f"Unexpected series fields for {symbol}: {exc}") from exc

        meta = payload.get("Meta Data")
        tz_name = meta.get("6. Time Zone", "US/Eastern") if isinstance(meta, dict) else "US/Eastern"
        try:
            closes.index = closes.index.tz_localize(tz_name, ambiguous="NaT", nonexistent="NaT")
        except (KeyError, ValueError):
            logger.warning(f"Unknown time zone {tz_name!r} for {symbol}, assuming UTC")
            closes.index = closes.index.tz_localize("UTC")

        points = _closes_to_points(closes)
        if not points or any(p.actual <= 0 for p in points):
            raise MalformedPayloadError(symbol, f"Series for {symbol} has no usable close prices")
        return points


class FinnhubProvider(QuoteProvider):
    """/quote and /stock/candle endpoints."""

    name = "finnhub"

    # Window of candles requested; covers a weekend plus a trading day
    LOOKBACK_SECONDS = 4 * 24 * 3600

    @property
    def resolution(self) -> str:
        return self.interval.replace("min", "")

    async def fetch_quote(self, client: httpx.AsyncClient, symbol: str) -> Quote:
        payload = await self._get_json(
            client,
            f"{self.config.base_url.rstrip('/')}/quote",
            {"symbol": symbol, "token": self.config.api_key},
        )
        try:
            price = float(payload["c"])
            change = float(payload.get("dp") or 0.0)
            high = _optional_float(payload.get("h"))
            low = _optional_float(payload.get("l"))
            open_ = _optional_float(payload.get("o"))
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(symbol, f"Unexpected quote fields for {symbol}: {exc}") from exc

        # Unknown symbols come back as all zeros
        if not price > 0:
            raise MalformedPayloadError(symbol, f"No quote data for {symbol}")

        return Quote(
            symbol=symbol,
            price=price,
            timestamp_millis=_now_millis(),
            volume=0,
            change_percent=change,
            high=high,
            low=low,
            open=open_,
        )

    async def fetch_series(self, client: httpx.AsyncClient, symbol: str) -> List[SeriesPoint]:
        now = int(time.time())
        payload = await self._get_json(
            client,
            f"{self.config.base_url.rstrip('/')}/stock/candle",
            {
                "symbol": symbol,
                "resolution": self.resolution,
                "from": now - self.LOOKBACK_SECONDS,
                "to": now,
                "token": self.config.api_key,
            },
        )
        if payload.get("s") != "ok":
            raise MalformedPayloadError(symbol, f"No historical data available for {symbol} (status={payload.get('s')!r})")

        try:
            closes = pd.Series(
                pd.to_numeric(payload["c"], errors="coerce"),
                index=pd.to_datetime(payload["t"], unit="s", utc=True, errors="coerce"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPayloadError(symbol, f"Unexpected series fields for {symbol}: {exc}") from exc

        points = _closes_to_points(closes)
        if not points or any(p.actual <= 0 for p in points):
            raise MalformedPayloadError(symbol, f"Series for {symbol} has no usable close prices")
        return points


PROVIDERS = {
    AlphaVantageProvider.name: AlphaVantageProvider,
    FinnhubProvider.name: FinnhubProvider,
}


def build_provider(name: str, config: ProviderConfig, interval: str = "5min") -> QuoteProvider:
    """Instantiate the provider registered under ``name``."""
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ValueError(f"Unknown market data provider: {name!r}. Valid: {sorted(PROVIDERS)}")
    return provider_cls(config, interval=interval)
