# backend/fintrack/services/fx/cache.py
"""
In-process cache for FX rates.

ECB reference rates change once a day and Yahoo Finance quotes are only
good for a couple of minutes, so each entry carries its own lifetime.
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any

from fintrack.services.constants import FX_CACHE_MAX_SIZE

logger = logging.getLogger(__name__)


class RateCache:
    """
    Thread-safe bounded LRU cache with per-entry TTL.

    Memory Safety:
        Holds at most max_size entries. When full, the least recently used
        entry is evicted to make room for new entries.

    Thread Safety:
        Uses threading.Lock; the FX service reads and writes it from its
        fan-out worker threads.
    """

    def __init__(
            self,
            default_ttl_seconds: int,
            max_size: int = FX_CACHE_MAX_SIZE,
    ):
        """
        Args:
            default_ttl_seconds: Lifetime for entries stored without an explicit TTL
            max_size: Maximum number of entries
        """
        self._cache: OrderedDict[str, tuple[datetime, Any]] = OrderedDict()
        self._default_ttl = timedelta(seconds=default_ttl_seconds)
        self._max_size = max_size
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """
        Get cached value if present and not expired.

        Implements LRU by moving accessed entries to the end.
        """
        with self._lock:
            if key in self._cache:
                expires_at, value = self._cache[key]
                if datetime.now() < expires_at:
                    self._cache.move_to_end(key)
                    logger.debug(f"FX cache hit for {key}")
                    return value
                del self._cache[key]
                logger.debug(f"FX cache expired for {key}")

        return None

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value, evicting the least recently used entry when full."""
        ttl = self._default_ttl if ttl_seconds is None else timedelta(seconds=ttl_seconds)
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            while len(self._cache) >= self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug(f"FX cache evicted {oldest_key} (LRU)")
            self._cache[key] = (datetime.now() + ttl, value)

    def clear(self) -> int:
        """Clear all entries. Returns the number of entries removed."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.info(f"Cleared {count} FX cache entries")
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
