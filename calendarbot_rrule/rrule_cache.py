"""Per-set memoization of recurrence queries.

Each ``RRuleSet`` owns one ``OperationCache``. Keys are operation signatures
such as ``all:10`` or ``between:20240101,20240201,True``. A dedicated slot
holds iterator progress so a fresh iteration can replay what an earlier one
already produced.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ITERATOR_KEY = "iterator"


class OperationCache:
    """Disable-able key -> value store with hit/miss statistics.

    Disabled caches bypass both reads and writes. No operation raises.

    Example:
        cache = OperationCache()
        key = cache.generate_key("all", 10)
        occurrences = cache.get_or_compute(key, lambda: expensive(10))
    """

    def __init__(self, disabled: bool = False, max_size: Optional[int] = None):
        """Initialize the cache.

        Args:
            disabled: Start with the cache bypassed
            max_size: Maximum number of stored query results (FIFO eviction when
                full); the iterator slot does not count
        """
        self._disabled = disabled
        self.max_size = max_size
        self.store: dict[str, Any] = {}
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }

    @property
    def disabled(self) -> bool:
        return self._disabled

    @staticmethod
    def generate_key(operation: str, *args: Any) -> str:
        """Build an operation signature, e.g. ``between:20240101,20240201,True``."""
        return f"{operation}:{','.join(str(arg) for arg in args)}"

    def get_or_set(self, key: str, default: T) -> T:
        """Return the stored value for ``key``, storing ``default`` on a miss."""
        if self._disabled:
            return default

        if key in self.store:
            self.stats["hits"] += 1
            logger.debug("Cache hit for key: %s", key)
            return self.store[key]

        self.stats["misses"] += 1
        logger.debug("Cache miss for key: %s", key)
        self._put(key, default)
        return default

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the stored value for ``key``, computing it at most once while enabled.

        When disabled, ``compute`` runs every time and nothing is stored.
        """
        if self._disabled:
            return compute()

        if key in self.store:
            self.stats["hits"] += 1
            logger.debug("Cache hit for key: %s", key)
            return self.store[key]

        self.stats["misses"] += 1
        logger.debug("Cache miss for key: %s", key)
        value = compute()
        self._put(key, value)
        return value

    def _put(self, key: str, value: Any) -> None:
        self.store[key] = value

        # FIFO eviction over query results; the iterator slot is neither counted nor evicted
        if self.max_size is not None and self._result_count() > self.max_size:
            oldest_key = next(k for k in self.store if k != ITERATOR_KEY)
            del self.store[oldest_key]
            self.stats["evictions"] += 1
            logger.debug(
                "Evicted oldest cache entry: %s (cache size: %d/%d)",
                oldest_key,
                len(self.store),
                self.max_size,
            )

    def _result_count(self) -> int:
        return len(self.store) - (ITERATOR_KEY in self.store)

    def disable(self) -> None:
        self._disabled = True

    def enable(self) -> None:
        self._disabled = False

    def clear(self) -> None:
        """Drop stored entries; the enabled/disabled state is kept."""
        if self.store:
            logger.debug("Cleared %d cache entries", len(self.store))
        self.store.clear()

    def clone(self) -> "OperationCache":
        """New, empty cache with the same enabled state and size bound."""
        return OperationCache(disabled=self._disabled, max_size=self.max_size)

    def __len__(self) -> int:
        return len(self.store)

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with hits, misses, hit_rate (0-100), evictions,
            current_size, max_size and disabled
        """
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (self.stats["hits"] / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "hits": self.stats["hits"],
            "misses": self.stats["misses"],
            "hit_rate": round(hit_rate, 2),
            "evictions": self.stats["evictions"],
            "current_size": len(self.store),
            "max_size": self.max_size,
            "disabled": self._disabled,
        }

    def clear_stats(self) -> None:
        """Clear cache statistics (useful for testing)."""
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
        }
