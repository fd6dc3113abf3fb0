# src/stock_tracker/data/synthetic.py
"""
Synthetic market data used when the provider is disabled or unusable.

Shapes are fixed (base price table, 60 s spacing, point counts) while the
values are random draws, so callers can only rely on ranges.
"""

import time
from typing import List, Optional

import numpy as np

from stock_tracker.data.models import Quote, SeriesPoint

# Symbols offered for tracking, with the base price synthetic data centres on
BASE_PRICES = {
    "AAPL": 175.0,
    "GOOGL": 140.0,
    "MSFT": 380.0,
    "TSLA": 245.0,
    "AMZN": 155.0,
    "NVDA": 495.0,
    "META": 485.0,
    "NFLX": 625.0,
}
AVAILABLE_SYMBOLS = tuple(BASE_PRICES)

DEFAULT_BASE_PRICE = 100.0
QUOTE_BAND = 0.02
WALK_START = 0.95
WALK_STEP = 0.01
WALK_DRIFT = 0.45
STEP_MILLIS = 60_000
MIN_PRICE = 0.01


def base_price(symbol: str) -> float:
    return BASE_PRICES.get(symbol.upper(), DEFAULT_BASE_PRICE)


def _now_millis() -> int:
    return int(time.time() * 1000)


def synthetic_quote(symbol: str, rng: np.random.Generator, now_millis: Optional[int] = None) -> Quote:
    """
    Quote priced uniformly within ±2% of the symbol's base price.
    """
    base = base_price(symbol)
    price = base * (1 + rng.uniform(-QUOTE_BAND, QUOTE_BAND))

    return Quote(
        symbol=symbol,
        price=round(float(price), 2),
        timestamp_millis=now_millis if now_millis is not None else _now_millis(),
        volume=int(rng.integers(500_000, 1_500_000)),
        change_percent=round(float(rng.uniform(-2.5, 2.5)), 2),
    )


def synthetic_series(
    symbol: str,
    point_count: int,
    rng: np.random.Generator,
    now_millis: Optional[int] = None,
) -> List[SeriesPoint]:
    """
    Random walk of ``point_count + 1`` points, one per minute, ending now.

    The walk starts at 95% of the base price and moves by
    ``(u - 0.45) * 1% of base`` per step, so it drifts slightly upward.
    """
    base = base_price(symbol)
    now = now_millis if now_millis is not None else _now_millis()

    steps = (rng.random(point_count + 1) - WALK_DRIFT) * base * WALK_STEP
    prices = base * WALK_START + np.cumsum(steps)

    points = []
    for offset, price in zip(range(point_count, -1, -1), prices):
        points.append(
            SeriesPoint.observed(now - offset * STEP_MILLIS, max(round(float(price), 2), MIN_PRICE))
        )
    return points
