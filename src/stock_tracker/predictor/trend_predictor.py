from typing import Optional, Sequence

import numpy as np

from stock_tracker.data.models import Prediction, SeriesPoint, Trend
from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)

HORIZON = 5
LOOKBACK = 5
STEP_MILLIS = 60_000
JITTER_LOW = 0.8
JITTER_HIGH = 1.2
BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95
MOMENTUM_WEIGHT = 10.0


def average_change(prices: Sequence[float], lookback: int = LOOKBACK) -> float:
    """Mean first difference over the last ``lookback`` prices (0 with fewer than two)."""
    recent = np.asarray(prices[-lookback:], dtype=float)
    if recent.size < 2:
        return 0.0
    return float(np.diff(recent).mean())


def trend_from_change(avg_change: float) -> Trend:
    if avg_change > 0:
        return Trend.UP
    if avg_change < 0:
        return Trend.DOWN
    return Trend.NEUTRAL


def confidence_from_momentum(momentum: float) -> float:
    # map relative slope -> score in [0.5, 0.95]
    return min(MAX_CONFIDENCE, BASE_CONFIDENCE + momentum * MOMENTUM_WEIGHT)


class TrendPredictor:
    """
    Linear extrapolation of the recent slope with per-point jitter.

    This is a heuristic rather than a fitted model: the slope is the mean
    first difference of the last five prices, each future step ``i`` lands
    at ``last_price + slope * i * U[0.8, 1.2]``, and confidence grows with
    the slope relative to the last price.
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        horizon: int = HORIZON,
        step_millis: int = STEP_MILLIS,
    ) -> None:
        """
        Args:
            rng (np.random.Generator, optional): Source of jitter draws.
            horizon (int): Number of future points to generate.
            step_millis (int): Spacing of generated points.
        """
        self.rng = rng or np.random.default_rng()
        self.horizon = horizon
        self.step_millis = step_millis

    def predict(self, symbol: str, series: Sequence[SeriesPoint]) -> Prediction:
        """
        Extrapolate ``series`` forward.

        Args:
            symbol (str): Ticker, used for logging only.
            series (Sequence[SeriesPoint]): Ascending observations.

        Returns:
            Prediction: ``horizon`` predicted points, trend and confidence.
        """
        if not series:
            logger.debug(f"No history for {symbol}, returning neutral prediction")
            return Prediction(points=(), trend=Trend.NEUTRAL, confidence=0.0)

        prices = [point.price for point in series]
        last_price = prices[-1]
        last_timestamp = series[-1].timestamp_millis

        avg_change = average_change(prices)
        trend = trend_from_change(avg_change)
        momentum = abs(avg_change) / last_price if last_price != 0 else 0.0

        jitter = self.rng.uniform(JITTER_LOW, JITTER_HIGH, size=self.horizon)
        points = tuple(
            SeriesPoint.forecast(
                last_timestamp + step * self.step_millis,
                float(last_price + avg_change * step * jitter[step - 1]),
            )
            for step in range(1, self.horizon + 1)
        )

        confidence = confidence_from_momentum(momentum)
        logger.debug(
            f"Prediction for {symbol}: trend={trend.value}, avg_change={avg_change:.4f}, "
            f"confidence={confidence:.2f}"
        )
        return Prediction(points=points, trend=trend, confidence=confidence)
