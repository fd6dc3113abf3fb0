"""
Command-line entrypoint for the Stock Tracker.

Drives the data-acquisition-and-prediction pipeline from a terminal and
prints JSON on stdout.

Usage:
    python main.py [--config CONFIG_PATH] [--mock] <command> [options]

Supported commands:
    quote       Fetch the current quote for one symbol
    series      Fetch the recent intraday series for one symbol
    predict     Fetch the series and extrapolate the trend
    watch       Track symbols and print snapshots on every refresh

Examples:
    python main.py --mock quote AAPL
    python main.py series MSFT --points 30
    python main.py predict TSLA --seed 7
    python main.py --mock watch AAPL NVDA --duration 30
"""

import argparse
import asyncio
import dataclasses
import json
import os
import sys
from typing import Any, List, Optional

import numpy as np

from stock_tracker.config.settings import FullConfig, load_settings
from stock_tracker.data.market_data import MarketDataSource
from stock_tracker.errors import SymbolRejectedError
from stock_tracker.pipeline.scheduler import TrackingScheduler
from stock_tracker.predictor.trend_predictor import TrendPredictor
from stock_tracker.utils.logger import get_logger, set_level, set_stream

logger = get_logger("stock_tracker.cli")


def validate_config_path(config_path: Optional[str]) -> None:
    """
    Validates whether the given config path exists and is a file.

    Args:
        config_path (str): Path to the config file (None means "use defaults").

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    if config_path is None:
        return
    if not os.path.isfile(config_path):
        logger.error(f"Config file not found: {config_path}")
        raise FileNotFoundError(f"Config file not found: {config_path}")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, default=str, indent=2))


async def run_quote(config: FullConfig, symbol: str) -> dict:
    async with MarketDataSource(config.market_data) as source:
        quote = await source.fetch_quote(symbol)
    return dataclasses.asdict(quote)


async def run_series(config: FullConfig, symbol: str, points: int) -> List[dict]:
    async with MarketDataSource(config.market_data) as source:
        series = await source.fetch_series(symbol, points)
    return [dataclasses.asdict(p) for p in series]


async def run_predict(config: FullConfig, symbol: str, points: int, seed: Optional[int] = None) -> dict:
    async with MarketDataSource(config.market_data) as source:
        series = await source.fetch_series(symbol, points)
    prediction = TrendPredictor(rng=np.random.default_rng(seed)).predict(symbol, series)
    return {
        "symbol": symbol,
        "trend": prediction.trend.value,
        "confidence": prediction.confidence,
        "history": [dataclasses.asdict(p) for p in series],
        "points": [dataclasses.asdict(p) for p in prediction.points],
    }


async def run_watch(config: FullConfig, symbols: List[str], duration: float) -> List[dict]:
    """
    Track ``symbols`` for ``duration`` seconds, printing the snapshot table
    after every refresh interval. Returns the final snapshots.
    """
    scheduler = TrackingScheduler.from_config(config)
    try:
        for symbol in symbols:
            try:
                await scheduler.add_symbol(symbol)
            except SymbolRejectedError as exc:
                logger.warning(f"{exc.message}: {symbol!r}")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration
        interval = config.tracker.refresh_interval_seconds
        while True:
            _emit([_card(s) for s in scheduler.snapshot()])
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))
        return [s.to_dict() for s in scheduler.snapshot()]
    finally:
        await scheduler.close()


def _card(snapshot) -> dict:
    card = snapshot.to_dict()
    card.pop("series")
    card.pop("quote")
    return card


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parse CLI arguments and dispatch commands.
    """
    parser = argparse.ArgumentParser(description="Stock Tracker CLI")
    parser.add_argument("--config", "-c", default=None, help="Path to config YAML")
    parser.add_argument("--mock", action="store_true", help="Use synthetic data only")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- Quote ---
    quote_parser = subparsers.add_parser("quote", help="Fetch the current quote")
    quote_parser.add_argument("symbol")

    # --- Series ---
    series_parser = subparsers.add_parser("series", help="Fetch the recent intraday series")
    series_parser.add_argument("symbol")
    series_parser.add_argument("--points", type=int, default=None, help="Number of intervals")

    # --- Predict ---
    predict_parser = subparsers.add_parser("predict", help="Extrapolate the recent trend")
    predict_parser.add_argument("symbol")
    predict_parser.add_argument("--points", type=int, default=None, help="Number of intervals of history")
    predict_parser.add_argument("--seed", type=int, default=None, help="Seed for the jitter draws")

    # --- Watch ---
    watch_parser = subparsers.add_parser("watch", help="Track symbols and print refreshed snapshots")
    watch_parser.add_argument("symbols", nargs="+")
    watch_parser.add_argument("--duration", type=float, default=30.0, help="Seconds to keep tracking")
    watch_parser.add_argument("--no-predictions", action="store_true", help="Disable trend predictions")

    args = parser.parse_args(argv)
    # stdout carries the JSON output
    set_stream(sys.stderr)

    try:
        validate_config_path(args.config)
        config = load_settings(args.config)
        set_level(config.logging.level)
        if args.mock:
            config.market_data.use_mock = True

        points = getattr(args, "points", None)
        if points is None:
            points = config.tracker.series_points

        if args.command == "quote":
            _emit(asyncio.run(run_quote(config, args.symbol.upper())))

        elif args.command == "series":
            _emit(asyncio.run(run_series(config, args.symbol.upper(), points)))

        elif args.command == "predict":
            _emit(asyncio.run(run_predict(config, args.symbol.upper(), points, args.seed)))

        elif args.command == "watch":
            if args.no_predictions:
                config.tracker.predictions_enabled = False
            asyncio.run(run_watch(config, args.symbols, args.duration))

    except Exception as e:
        logger.exception(f"Fatal error during execution: {e}")
        raise
