from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from stock_tracker.config import settings
from stock_tracker.config.settings import FullConfig, apply_env_overrides, load_settings

# -------------------------------------------------------------------------
# Tests for load_settings
# -------------------------------------------------------------------------

def test_defaults_without_file(tmp_path, monkeypatch):
    """No explicit path and no config/config.yaml gives built-in defaults."""
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    config = load_settings(environ={})

    assert config.market_data.use_mock is False
    assert config.market_data.provider == "alpha_vantage"
    assert config.market_data.cache_ttl_seconds == 60.0
    assert config.market_data.alpha_vantage.base_url == "https://www.alphavantage.co/query"
    assert config.market_data.alpha_vantage.api_key is None
    assert config.tracker.refresh_interval_seconds == 5.0
    assert config.tracker.series_points == 20
    assert config.tracker.predictions_enabled is True
    assert config.logging.level == "INFO"


def test_values_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump({
        "market_data": {"provider": "finnhub", "finnhub": {"base_url": "https://example.test", "api_key": "abc"}},
        "tracker": {"series_points": 30},
    }))

    config = load_settings(str(config_file), environ={})

    assert config.market_data.active_provider.api_key == "abc"
    assert config.market_data.active_provider.base_url == "https://example.test"
    assert config.tracker.series_points == 30


def test_environment_overrides_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump({"market_data": {"use_mock": False, "alpha_vantage": None}}))

    config = load_settings(
        str(config_file),
        environ={"ALPHA_VANTAGE_KEY": "secret", "USE_MOCK": "true", "LOG_LEVEL": "DEBUG"},
    )

    assert config.market_data.alpha_vantage.api_key == "secret"
    assert config.market_data.alpha_vantage.base_url == "https://www.alphavantage.co/query"
    assert config.market_data.use_mock is True
    assert config.logging.level == "DEBUG"


@pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("false", False), ("0", False)])
def test_use_mock_parsing(value, expected):
    raw = apply_env_overrides({}, {"USE_MOCK": value})
    assert raw["market_data"]["use_mock"] is expected


def test_empty_env_values_ignored():
    assert apply_env_overrides({"tracker": {}}, {"FINNHUB_KEY": ""}) == {"tracker": {}}


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "nope.yaml"), environ={})


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        FullConfig(tracker={"refresh_interval_seconds": 0})
    with pytest.raises(ValidationError):
        FullConfig(market_data={"provider": "bloomberg"})


def test_shipped_config_file_is_valid():
    config_file = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
    config = load_settings(str(config_file), environ={})
    assert config.market_data.use_mock is True
    assert config.tracker.refresh_interval_seconds == 5.0
