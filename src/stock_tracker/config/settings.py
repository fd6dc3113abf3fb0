# src/stock_tracker/config/settings.py

import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from stock_tracker.utils.config import load_config  # YAML loader
from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "config.yaml"

ProviderName = Literal["alpha_vantage", "finnhub"]


# -------------------
# Pydantic Configs
# -------------------
class ProviderConfig(BaseModel):
    base_url: str
    api_key: Optional[str] = None


class MarketDataConfig(BaseModel):
    use_mock: bool = False
    provider: ProviderName = "alpha_vantage"
    alpha_vantage: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(base_url="https://www.alphavantage.co/query")
    )
    finnhub: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(base_url="https://finnhub.io/api/v1")
    )
    timeout_seconds: float = Field(default=10.0, gt=0)
    intraday_interval: str = "5min"
    mock_latency_seconds: float = Field(default=0.0, ge=0)
    cache_ttl_seconds: float = Field(default=60.0, gt=0)

    @property
    def active_provider(self) -> ProviderConfig:
        return getattr(self, self.provider)


class TrackerConfig(BaseModel):
    refresh_interval_seconds: float = Field(default=5.0, gt=0)
    series_points: int = Field(default=20, ge=1)
    predictions_enabled: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    error_log: Optional[str] = None


class FullConfig(BaseModel):
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -------------------
# Environment overrides
# -------------------
_ENV_OVERRIDES = {
    "ALPHA_VANTAGE_KEY": ("market_data", "alpha_vantage", "api_key"),
    "ALPHA_VANTAGE_URL": ("market_data", "alpha_vantage", "base_url"),
    "FINNHUB_KEY": ("market_data", "finnhub", "api_key"),
    "FINNHUB_URL": ("market_data", "finnhub", "base_url"),
    "MARKET_PROVIDER": ("market_data", "provider"),
    "USE_MOCK": ("market_data", "use_mock"),
    "LOG_LEVEL": ("logging", "level"),
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def apply_env_overrides(raw_config: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Layer environment variables over a raw (YAML) config dict.

    Args:
        raw_config (Dict[str, Any]): Parsed YAML content.
        environ (Mapping[str, str]): Environment to read from.

    Returns:
        Dict[str, Any]: The same dict, updated in place.
    """
    for env_name, path in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue

        node = raw_config
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = _parse_bool(value) if env_name == "USE_MOCK" else value
        logger.debug(f"Config override from environment: {env_name}")
    return raw_config


# -------------------
# Functions
# -------------------
def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> FullConfig:
    """
    Load and validate the full config as a typed Pydantic model.

    An explicit ``config_path`` must exist. Without one, ``config/config.yaml``
    is used when present and built-in defaults otherwise. Environment
    variables (and a ``.env`` file) take precedence over the file.

    Args:
        config_path (str, optional): Path to the YAML config file.
        environ (Mapping[str, str], optional): Environment; defaults to os.environ.
        use_dotenv (bool): Load a ``.env`` file into the environment first.

    Returns:
        FullConfig: Typed configuration object.
    """
    if config_path is not None:
        raw_config = load_config(config_path)
    elif DEFAULT_CONFIG_PATH.is_file():
        raw_config = load_config(str(DEFAULT_CONFIG_PATH))
    else:
        logger.info("No config file found, using defaults")
        raw_config = {}

    if environ is None:
        if use_dotenv:
            load_dotenv()
        environ = os.environ

    return FullConfig(**apply_env_overrides(raw_config, environ))
