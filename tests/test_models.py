import dataclasses

import pytest

from stock_tracker.config.api_models import SymbolRequest, normalize_symbol
from stock_tracker.data.models import Prediction, SeriesPoint, SymbolState, TrackedSymbol, Trend, time_label
from stock_tracker.errors import InvalidSymbolError
from tests.mocks.market_data_mocks import make_quote


def test_series_point_constructors():
    observed = SeriesPoint.observed(1_700_000_000_000, 10.0)
    forecast = SeriesPoint.forecast(1_700_000_060_000, 11.0)

    assert observed.price == 10.0 and not observed.is_prediction
    assert forecast.price == 11.0 and forecast.is_prediction
    assert observed.label == time_label(1_700_000_000_000)


def test_records_are_frozen():
    point = SeriesPoint.observed(0, 1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        point.actual = 2.0


def test_tracked_symbol_defaults():
    tracked = TrackedSymbol(symbol="AAPL")

    assert tracked.state is SymbolState.ADDED
    assert tracked.current_price == 0.0
    assert tracked.trend is Trend.NEUTRAL
    assert tracked.to_dict()["confidence"] is None


def test_tracked_symbol_to_dict():
    tracked = TrackedSymbol(
        symbol="AAPL",
        latest_quote=make_quote("AAPL", 150.0),
        series=(SeriesPoint.observed(0, 149.0),),
        prediction=Prediction(trend=Trend.DOWN, confidence=0.7),
        last_update_millis=5,
        state=SymbolState.FRESH,
    )

    card = tracked.to_dict()
    assert card["current_price"] == 150.0
    assert card["change_percent"] == 1.5
    assert card["trend"] == "down"
    assert card["confidence"] == 0.7
    assert card["state"] == "fresh"
    assert card["quote"]["volume"] == 1000
    assert card["series"][0]["actual"] == 149.0


@pytest.mark.parametrize("raw,expected", [("aapl", "AAPL"), ("  msft ", "MSFT"), ("brk.b", "BRK.B")])
def test_normalize_symbol(raw, expected):
    assert normalize_symbol(raw) == expected
    assert SymbolRequest(symbol=raw).symbol == expected


@pytest.mark.parametrize("raw", ["", " ", "AB CD", "AAPL!", "ABCDEFGHIJK", 42])
def test_normalize_symbol_rejects(raw):
    with pytest.raises(InvalidSymbolError):
        normalize_symbol(raw)
