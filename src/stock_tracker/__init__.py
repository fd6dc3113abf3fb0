"""
Stock tracker: market data acquisition, trend prediction and scheduled
refresh for a user-selected set of symbols.

Modules:
- data.market_data: quote/series fetching with cache and synthetic fallback
- data.providers: Alpha Vantage and Finnhub wire formats
- predictor.trend_predictor: short-horizon trend extrapolation
- pipeline.scheduler: tracked-symbol ownership and periodic refresh
- utils.cache_manager: TTL cache shared by all fetches
"""

__version__ = "0.1.0"
