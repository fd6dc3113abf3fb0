# src/stock_tracker/utils/cache_manager.py
"""
In-memory TTL cache for provider responses.
Entries older than the TTL are treated as missing and dropped on read;
nothing is swept proactively and nothing is written to disk.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from stock_tracker.data.models import CacheEntry
from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class QuoteCache:
    """
    Keyed cache shared by every fetch of the market data source.
    Only the data source writes to it, and only after a successful
    provider call.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time) -> None:
        """
        Args:
            ttl_seconds (float): Age after which an entry counts as absent.
            clock (Callable[[], float]): Returns the current time in seconds.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    # ---------------------
    # Key Utilities
    # ---------------------
    @staticmethod
    def make_key(symbol: str, kind: str) -> str:
        """Generate a consistent cache key, e.g. ``AAPL:quote``."""
        safe_id = symbol.strip().upper().replace(" ", "_").replace("/", "_")
        return f"{safe_id}:{kind}"

    # ---------------------
    # Core Cache Operations
    # ---------------------
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` or None if missing/expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.cached_at > self.ttl_seconds:
            self._entries.pop(key, None)
            logger.debug(f"Cache expired: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return entry

    def put(self, key: str, data: Any) -> CacheEntry:
        """Store ``data`` under ``key``, overwriting whatever was there."""
        entry = CacheEntry(data=data, cached_at=self._clock())
        self._entries[key] = entry
        logger.debug(f"Cached: {key}")
        return entry

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Drop every key containing ``pattern`` (all keys if None). Returns the count."""
        keys_to_delete = [k for k in self._entries if pattern is None or pattern in k]
        for k in keys_to_delete:
            self._entries.pop(k, None)
        if keys_to_delete:
            logger.info(f"Invalidated {len(keys_to_delete)} cache entries (pattern={pattern!r})")
        return len(keys_to_delete)

    def invalidate_symbol(self, symbol: str) -> int:
        """Drop every entry (quote and series) cached for ``symbol``."""
        prefix = self.make_key(symbol, "")
        keys_to_delete = [k for k in self._entries if k.startswith(prefix)]
        for k in keys_to_delete:
            self._entries.pop(k, None)
        logger.debug(f"Invalidated cache for {symbol}: {keys_to_delete}")
        return len(keys_to_delete)

    def list_cache(self) -> list[str]:
        """List all stored keys, including expired entries not yet read."""
        return sorted(self._entries)

    def backend_info(self) -> str:
        """Return backend cache summary."""
        return f"Memory items: {len(self._entries)}, TTL: {self.ttl_seconds}s"

    def __len__(self) -> int:
        return len(self._entries)
