import numpy as np
import pytest

from stock_tracker.data.models import Trend
from stock_tracker.predictor.trend_predictor import (
    MAX_CONFIDENCE,
    TrendPredictor,
    average_change,
    confidence_from_momentum,
)
from tests.mocks.market_data_mocks import make_series


@pytest.fixture
def predictor():
    return TrendPredictor(rng=np.random.default_rng(7))


def test_average_change_uses_last_five_prices():
    assert average_change([1000.0, 100.0, 101.0, 102.0, 103.0, 104.0]) == pytest.approx(1.0)
    assert average_change([50.0]) == 0.0
    assert average_change([]) == 0.0


def test_confidence_is_capped():
    assert confidence_from_momentum(0.0) == 0.5
    assert confidence_from_momentum(0.01) == pytest.approx(0.6)
    assert confidence_from_momentum(1.0) == MAX_CONFIDENCE


def test_upward_series_extrapolates_up(predictor):
    series = make_series([100.0, 101.0, 102.0, 103.0, 104.0, 105.0])
    prediction = predictor.predict("AAPL", series)

    assert prediction.trend is Trend.UP
    assert prediction.confidence == pytest.approx(0.5 + (1.0 / 105.0) * 10)
    assert len(prediction.points) == 5

    last_ts = series[-1].timestamp_millis
    for step, point in enumerate(prediction.points, start=1):
        assert point.timestamp_millis == last_ts + step * 60_000
        assert point.actual is None
        assert 105.0 + 0.8 * step - 1e-9 <= point.predicted <= 105.0 + 1.2 * step + 1e-9


def test_downward_series_extrapolates_down(predictor):
    series = make_series([60.0, 58.0, 56.0, 54.0, 52.0])
    prediction = predictor.predict("TSLA", series)

    assert prediction.trend is Trend.DOWN
    for step, point in enumerate(prediction.points, start=1):
        assert 52.0 - 2.0 * 1.2 * step - 1e-9 <= point.predicted <= 52.0 - 2.0 * 0.8 * step + 1e-9


def test_flat_series_is_neutral(predictor):
    prediction = predictor.predict("MSFT", make_series([380.0] * 6))

    assert prediction.trend is Trend.NEUTRAL
    assert prediction.confidence == 0.5
    assert all(p.predicted == 380.0 for p in prediction.points)


def test_single_point_series_is_neutral(predictor):
    prediction = predictor.predict("MSFT", make_series([380.0]))

    assert prediction.trend is Trend.NEUTRAL
    assert len(prediction.points) == 5
    assert all(p.predicted == 380.0 for p in prediction.points)


def test_empty_series_has_no_points(predictor):
    prediction = predictor.predict("MSFT", [])

    assert prediction.points == ()
    assert prediction.trend is Trend.NEUTRAL
    assert prediction.confidence == 0.0


def test_steep_series_confidence_capped(predictor):
    prediction = predictor.predict("NVDA", make_series([10.0, 20.0, 30.0, 40.0, 50.0]))
    assert prediction.confidence == MAX_CONFIDENCE


def test_seeded_predictions_repeat():
    series = make_series([100.0, 100.5, 101.5, 101.0, 102.0])
    first = TrendPredictor(rng=np.random.default_rng(3)).predict("AAPL", series)
    second = TrendPredictor(rng=np.random.default_rng(3)).predict("AAPL", series)
    assert first == second


def test_custom_horizon(predictor):
    predictor.horizon = 3
    prediction = predictor.predict("AAPL", make_series([1.0, 2.0, 3.0]))
    assert len(prediction.points) == 3


# === Test Case: TC20260116_predict_010 ===
# Description : Confidence never drops as the recent slope steepens and stays
#               inside [0.5, 0.95], for rising and falling series alike.
# Component   : src/stock_tracker/predictor/trend_predictor.py
# Category    : Unit
@pytest.mark.parametrize("direction", [1.0, -1.0])
def test_confidence_monotonic_in_slope(predictor, direction):
    slopes = [0.0, 0.1, 0.5, 1.0, 2.0, 5.0, 20.0]
    confidences = []
    for slope in slopes:
        series = make_series([200.0 + direction * slope * i for i in range(6)])
        confidences.append(predictor.predict("AAPL", series).confidence)

    assert confidences == sorted(confidences)
    assert all(0.5 <= c <= MAX_CONFIDENCE for c in confidences)
    assert confidences[0] == 0.5
    assert confidences[-1] == MAX_CONFIDENCE
