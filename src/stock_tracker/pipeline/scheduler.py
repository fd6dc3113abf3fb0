# src/stock_tracker/pipeline/scheduler.py
"""
Tracking Scheduler
------------------

Owns the set of tracked symbols and keeps each one fresh:

- add/remove symbols, with the refresh timer running only while the
  tracked set is non-empty;
- refresh one symbol (quote + series fetched concurrently, optional trend
  prediction, single snapshot swap);
- refresh every symbol concurrently, isolating per-symbol failures.

Per-symbol state machine: added -> fetching -> fresh | degraded, back to
fetching on every refresh. Removal drops the symbol; a refresh that
completes after its symbol was removed is discarded.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from stock_tracker.config.api_models import normalize_symbol
from stock_tracker.config.settings import FullConfig, TrackerConfig
from stock_tracker.data.market_data import MarketDataSource
from stock_tracker.data.models import Prediction, SeriesPoint, SymbolState, TrackedSymbol
from stock_tracker.data.synthetic import AVAILABLE_SYMBOLS
from stock_tracker.errors import DuplicateSymbolError, UnknownSymbolError
from stock_tracker.monitoring.error_logging import ErrorComponent, ErrorLogger, create_component_logger
from stock_tracker.pipeline.refresh_timer import RefreshTimer
from stock_tracker.predictor.trend_predictor import TrendPredictor
from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)


def merge_history(
    confirmed: Sequence[SeriesPoint],
    fetched: Sequence[SeriesPoint],
    live: bool,
) -> Tuple[Tuple[SeriesPoint, ...], Tuple[SeriesPoint, ...]]:
    """
    Combine the provider-confirmed history with a freshly fetched series.

    Only fetched points newer than the last confirmed one are used. Live
    points join the confirmed history for good. Synthetic points are shown
    after the confirmed history but never confirmed, so the next live
    series replaces them.

    The confirmed history is never trimmed: it grows by one point per new
    provider bar for as long as the symbol is tracked.

    Returns:
        Tuple: ``(confirmed, actuals)``, the new confirmed history and the
        actual points to display, both ascending by timestamp.
    """
    confirmed = tuple(confirmed)
    last_confirmed = confirmed[-1].timestamp_millis if confirmed else None

    newer = tuple(
        p for p in sorted(fetched, key=lambda p: p.timestamp_millis)
        if p.actual is not None and (last_confirmed is None or p.timestamp_millis > last_confirmed)
    )
    if live:
        confirmed = confirmed + newer
        return confirmed, confirmed
    return confirmed, confirmed + newer


def merge_series(actuals: Sequence[SeriesPoint], prediction: Optional[Prediction]) -> Tuple[SeriesPoint, ...]:
    """Actual points followed by the predicted segment, ascending by timestamp."""
    predicted = list(prediction.points) if prediction else []
    return tuple(sorted(list(actuals) + predicted, key=lambda p: p.timestamp_millis))


def _key(symbol: object) -> str:
    return symbol.strip().upper() if isinstance(symbol, str) else ""


@dataclass
class _Slot:
    """
    Current snapshot of a symbol, its provider-confirmed history and the
    lock serializing its refreshes.
    """
    snapshot: TrackedSymbol
    confirmed: Tuple[SeriesPoint, ...] = ()
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class TrackingScheduler:
    """
    Refreshes every tracked symbol on a fixed interval.

    The symbol -> snapshot mapping is private; accessors return immutable
    TrackedSymbol snapshots, so callers never hold a reference into it.
    Symbols are matched case-insensitively everywhere.
    """

    def __init__(
        self,
        source: MarketDataSource,
        predictor: Optional[TrendPredictor] = None,
        config: Optional[TrackerConfig] = None,
        error_logger: Optional[ErrorLogger] = None,
    ) -> None:
        """
        Args:
            source (MarketDataSource): Quote/series access (with cache and fallback).
            predictor (TrendPredictor, optional): Trend extrapolation.
            config (TrackerConfig, optional): Interval, series length, prediction toggle.
            error_logger (ErrorLogger, optional): Receives degraded refreshes.
        """
        self.source = source
        self.predictor = predictor or TrendPredictor()
        self.config = config or TrackerConfig()
        self.errors = error_logger or ErrorLogger(component=ErrorComponent.SCHEDULER)
        self.predictions_enabled = self.config.predictions_enabled
        self.timer = RefreshTimer(self._on_tick, self.config.refresh_interval_seconds)

        self._slots: Dict[str, _Slot] = {}

    @classmethod
    def from_config(cls, config: FullConfig) -> TrackingScheduler:
        """Wire a scheduler, data source and predictor from a loaded config."""
        error_log = config.logging.error_log
        source = MarketDataSource(
            config.market_data,
            error_logger=create_component_logger(ErrorComponent.MARKET_DATA, error_log),
        )
        return cls(
            source,
            TrendPredictor(),
            config.tracker,
            error_logger=create_component_logger(ErrorComponent.SCHEDULER, error_log),
        )

    # ---------------------
    # Tracked set
    # ---------------------
    async def add_symbol(self, symbol: str) -> Optional[TrackedSymbol]:
        """
        Start tracking ``symbol`` and refresh it once.

        Returns:
            Optional[TrackedSymbol]: Snapshot after the first refresh, or None
            if the symbol was removed while that refresh was running.

        Raises:
            InvalidSymbolError: ``symbol`` is empty or not a ticker.
            DuplicateSymbolError: ``symbol`` is already tracked.
        """
        key = normalize_symbol(symbol)
        if key in self._slots:
            raise DuplicateSymbolError(key)

        self._slots[key] = _Slot(TrackedSymbol(symbol=key, last_update_millis=int(time.time() * 1000)))
        logger.info(f"Tracking {key} ({len(self._slots)} symbols)")
        self._sync_timer()

        await self.refresh_one(key)
        return self.get(key)

    def remove_symbol(self, symbol: str) -> bool:
        """
        Stop tracking ``symbol`` and drop its cached provider data.
        Idempotent: returns False if it was not tracked.
        """
        key = _key(symbol)
        slot = self._slots.pop(key, None)
        if slot is None:
            return False

        self.source.cache.invalidate_symbol(key)
        logger.info(f"Stopped tracking {key} ({len(self._slots)} symbols)")
        self._sync_timer()
        return True

    def _sync_timer(self) -> None:
        if self._slots and not self.timer.running:
            self.timer.start()
        elif not self._slots and self.timer.running:
            self.timer.stop()

    # ---------------------
    # Refresh
    # ---------------------
    async def refresh_one(self, symbol: str) -> bool:
        """
        Fetch, predict and swap in a new snapshot for ``symbol``.

        Returns:
            bool: True if a fresh snapshot was stored. False for an untracked
            symbol, a degraded refresh, or a refresh discarded because the
            symbol was removed meanwhile.
        """
        key = _key(symbol)
        slot = self._slots.get(key)
        if slot is None:
            return False

        async with slot.lock:
            if self._slots.get(key) is not slot:
                return False

            slot.snapshot = dataclasses.replace(slot.snapshot, state=SymbolState.FETCHING)
            with_prediction = self.predictions_enabled

            try:
                quote, fetched = await asyncio.gather(
                    self.source.fetch_quote(key),
                    self.source.fetch_series_result(key, self.config.series_points),
                )
                confirmed, actuals = merge_history(slot.confirmed, fetched.points, fetched.live)
                prediction = self.predictor.predict(key, actuals) if with_prediction else None
                merged = merge_series(actuals, prediction)
            except Exception as exc:
                if self._slots.get(key) is not slot:
                    return False
                self.errors.log_error(
                    f"Refresh failed for {key}, keeping last known data",
                    exception=exc,
                    context={"symbol": key},
                    severity="error",
                )
                slot.snapshot = dataclasses.replace(slot.snapshot, degraded=True, state=SymbolState.DEGRADED)
                return False

            if self._slots.get(key) is not slot:
                logger.debug(f"Discarding refresh for removed symbol {key}")
                return False

            slot.confirmed = confirmed
            slot.snapshot = TrackedSymbol(
                symbol=key,
                latest_quote=quote,
                series=merged,
                prediction=prediction,
                last_update_millis=quote.timestamp_millis,
                degraded=False,
                state=SymbolState.FRESH,
            )
            return True

    async def refresh_all(self, skip_in_flight: bool = False) -> Dict[str, bool]:
        """
        Refresh every tracked symbol concurrently.

        Args:
            skip_in_flight (bool): Leave out symbols whose previous refresh
                has not finished yet (used by timer ticks).

        Returns:
            Dict[str, bool]: Outcome of ``refresh_one`` per symbol.
        """
        symbols = [
            s for s, slot in self._slots.items()
            if not (skip_in_flight and slot.lock.locked())
        ]
        if not symbols:
            return {}

        results = await asyncio.gather(
            *(self.refresh_one(s) for s in symbols), return_exceptions=True
        )

        outcome = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                self.errors.log_error(
                    f"Unhandled refresh error for {symbol}",
                    exception=result,
                    context={"symbol": symbol},
                    severity="error",
                )
                outcome[symbol] = False
            else:
                outcome[symbol] = result
        return outcome

    async def _on_tick(self) -> None:
        await self.refresh_all(skip_in_flight=True)

    async def set_predictions_enabled(self, enabled: bool) -> None:
        """Switch predictions on/off and refresh everything right away."""
        enabled = bool(enabled)
        if enabled == self.predictions_enabled:
            return
        self.predictions_enabled = enabled
        logger.info(f"Predictions {'enabled' if enabled else 'disabled'}")
        await self.refresh_all()

    # ---------------------
    # Lifecycle
    # ---------------------
    def start(self) -> None:
        """Start the refresh timer if any symbol is tracked."""
        self._sync_timer()

    def stop(self) -> None:
        """Stop the refresh timer; tracked symbols are kept."""
        self.timer.stop()

    async def close(self) -> None:
        self.stop()
        await self.source.aclose()

    # ---------------------
    # Read accessors
    # ---------------------
    def snapshot(self) -> List[TrackedSymbol]:
        """Tracked symbols in the order they were added."""
        return [slot.snapshot for slot in self._slots.values()]

    def get(self, symbol: str) -> Optional[TrackedSymbol]:
        slot = self._slots.get(_key(symbol))
        return slot.snapshot if slot else None

    def require(self, symbol: str) -> TrackedSymbol:
        """Like ``get`` but raises UnknownSymbolError for an untracked symbol."""
        slot = self._slots.get(_key(symbol))
        if slot is None:
            raise UnknownSymbolError(symbol)
        return slot.snapshot

    def chart_series(self, symbol: str, max_actual: Optional[int] = None) -> Tuple[SeriesPoint, ...]:
        """
        Merged actual + predicted series for charting (empty if untracked).

        Args:
            symbol (str): Tracked ticker.
            max_actual (int, optional): Keep only the most recent ``max_actual``
                actual points; the predicted segment is always included.
        """
        slot = self._slots.get(_key(symbol))
        return slot.snapshot.windowed_series(max_actual) if slot else ()

    def primary_symbol(self) -> Optional[str]:
        """The first tracked symbol, which is the one charted."""
        return next(iter(self._slots), None)

    def available_symbols(self) -> List[str]:
        """Known symbols that are not tracked yet."""
        return [s for s in AVAILABLE_SYMBOLS if s not in self._slots]

    @property
    def symbols(self) -> List[str]:
        return list(self._slots)

    def get_summary(self) -> Dict[str, int]:
        states = [slot.snapshot.state for slot in self._slots.values()]
        return {
            "total": len(states),
            "fresh": states.count(SymbolState.FRESH),
            "degraded": sum(1 for slot in self._slots.values() if slot.snapshot.degraded),
            "fetching": states.count(SymbolState.FETCHING),
        }

    def __contains__(self, symbol: object) -> bool:
        return _key(symbol) in self._slots

    def __len__(self) -> int:
        return len(self._slots)
