# src/stock_tracker/data/models.py
"""
Immutable records passed between the market data source, the trend
predictor and the tracking scheduler.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Trend(Enum):
    """Coarse direction derived from recent price deltas."""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class SymbolState(Enum):
    """Refresh state of a tracked symbol."""
    ADDED = "added"
    FETCHING = "fetching"
    FRESH = "fresh"
    DEGRADED = "degraded"


def time_label(timestamp_millis: int) -> str:
    """Local wall-clock label (HH:MM:SS) for a millisecond timestamp."""
    return datetime.fromtimestamp(timestamp_millis / 1000).strftime("%H:%M:%S")


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    timestamp_millis: int
    volume: int
    change_percent: float
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None


@dataclass(frozen=True)
class SeriesPoint:
    """
    One observation on a chart. Points produced by the data source carry
    ``actual``; points produced by the predictor carry ``predicted``.
    """
    timestamp_millis: int
    label: str
    actual: Optional[float] = None
    predicted: Optional[float] = None

    @property
    def price(self) -> float:
        if self.actual is not None:
            return self.actual
        if self.predicted is not None:
            return self.predicted
        return 0.0

    @property
    def is_prediction(self) -> bool:
        return self.predicted is not None and self.actual is None

    @classmethod
    def observed(cls, timestamp_millis: int, price: float) -> SeriesPoint:
        return cls(timestamp_millis=timestamp_millis, label=time_label(timestamp_millis), actual=price)

    @classmethod
    def forecast(cls, timestamp_millis: int, price: float) -> SeriesPoint:
        return cls(timestamp_millis=timestamp_millis, label=time_label(timestamp_millis), predicted=price)


@dataclass(frozen=True)
class Prediction:
    points: Tuple[SeriesPoint, ...] = ()
    trend: Trend = Trend.NEUTRAL
    confidence: float = 0.0


@dataclass(frozen=True)
class TrackedSymbol:
    """
    Snapshot of one tracked symbol. The scheduler never edits a snapshot;
    it swaps in a new one, so a reader always sees a complete record.
    """
    symbol: str
    latest_quote: Optional[Quote] = None
    series: Tuple[SeriesPoint, ...] = ()
    prediction: Optional[Prediction] = None
    last_update_millis: int = 0
    degraded: bool = False
    state: SymbolState = SymbolState.ADDED

    @property
    def current_price(self) -> float:
        return self.latest_quote.price if self.latest_quote else 0.0

    @property
    def change_percent(self) -> float:
        return self.latest_quote.change_percent if self.latest_quote else 0.0

    @property
    def trend(self) -> Trend:
        return self.prediction.trend if self.prediction else Trend.NEUTRAL

    def windowed_series(self, max_actual: Optional[int] = None) -> Tuple[SeriesPoint, ...]:
        """
        ``series`` limited to the last ``max_actual`` actual points, with the
        predicted segment kept whole. None returns the full series.
        """
        if max_actual is None:
            return self.series
        if max_actual < 0:
            raise ValueError("max_actual must be >= 0")
        actuals = [p for p in self.series if not p.is_prediction]
        dropped = len(actuals) - max_actual
        if dropped <= 0:
            return self.series
        cutoff = actuals[dropped - 1].timestamp_millis
        return tuple(p for p in self.series if p.is_prediction or p.timestamp_millis > cutoff)

    def to_dict(self, max_actual: Optional[int] = None) -> Dict[str, Any]:
        """
        JSON-ready view used by consumers (cards, CLI output).

        ``series`` keeps growing while a symbol is tracked; pass ``max_actual``
        to emit only the most recent actual points.
        """
        return {
            "symbol": self.symbol,
            "current_price": self.current_price,
            "change_percent": self.change_percent,
            "trend": self.trend.value,
            "confidence": self.prediction.confidence if self.prediction else None,
            "last_update_millis": self.last_update_millis,
            "degraded": self.degraded,
            "state": self.state.value,
            "quote": asdict(self.latest_quote) if self.latest_quote else None,
            "series": [asdict(p) for p in self.windowed_series(max_actual)],
        }


@dataclass
class CacheEntry:
    data: Any
    cached_at: float = field(default=0.0)


@dataclass(frozen=True)
class SeriesResult:
    """
    Series returned by the market data source. ``live`` is False when the
    points are synthetic (mock mode or fallback) and True when they came
    from the provider, directly or through the cache.
    """
    points: List[SeriesPoint]
    live: bool
