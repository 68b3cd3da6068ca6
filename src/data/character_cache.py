"""In-memory cache of parsed TibiaData character responses.

Entries expire after a fixed TTL and are evicted least-recently-used first
once either the entry-count bound or the approximate byte-cost bound is
exceeded.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from models.tibia import CharacterResponse
from utils.metrics import MetricCategories, MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_COUNT_LIMIT = 50
DEFAULT_COST_LIMIT = 10 * 1024 * 1024  # 10 MB


def normalize_cache_key(name: str) -> str:
    """Canonical cache key for a character name (trimmed, lowercased)."""
    return name.strip().lower()


def estimate_cost(response: CharacterResponse) -> int:
    """Approximate memory cost of a response in bytes."""
    return len(response.model_dump_json().encode("utf-8"))


@dataclass(frozen=True)
class CacheEntry:
    """A cached response with the monotonic time it was stored."""

    response: CharacterResponse
    stored_at: float
    cost: int


class CharacterCache:
    """TTL + LRU cache keyed by normalized character name.

    Only touched from the lookup pipeline's single update path, so it does
    no locking of its own.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        count_limit: int = DEFAULT_COUNT_LIMIT,
        cost_limit: int = DEFAULT_COST_LIMIT,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Age after which an entry is never returned
            count_limit: Maximum number of entries
            cost_limit: Maximum approximate total size in bytes
            clock: Monotonic time source (injectable for tests)
            metrics: Metrics collector for expirations and evictions
        """
        if count_limit < 1 or cost_limit < 1:
            raise ValueError("count_limit and cost_limit must be positive")
        self.ttl_seconds = ttl_seconds
        self.count_limit = count_limit
        self.cost_limit = cost_limit
        self._clock = clock
        self._metrics = metrics or get_metrics()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._total_cost = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return normalize_cache_key(name) in self._entries

    @property
    def total_cost(self) -> int:
        return self._total_cost

    def get(self, name: str) -> CharacterResponse | None:
        """Return the cached response if present and younger than the TTL."""
        key = normalize_cache_key(name)
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = self._clock() - entry.stored_at
        if age > self.ttl_seconds:
            logger.debug("Cache entry for %s expired (age: %.1fs)", key, age)
            self._remove(key)
            self._metrics.increment(f"{MetricCategories.CACHE}.expired")
            return None

        self._entries.move_to_end(key)
        logger.debug("Cache hit for %s (age: %.1fs)", key, age)
        return entry.response

    def put(self, name: str, response: CharacterResponse) -> None:
        """Insert or overwrite an entry, then enforce the count and cost bounds."""
        key = normalize_cache_key(name)
        if key in self._entries:
            self._remove(key)

        entry = CacheEntry(
            response=response, stored_at=self._clock(), cost=estimate_cost(response)
        )
        self._entries[key] = entry
        self._total_cost += entry.cost

        while len(self._entries) > self.count_limit or (
            self._total_cost > self.cost_limit and len(self._entries) > 1
        ):
            oldest_key = next(iter(self._entries))
            logger.debug("Evicting least recently used cache entry %s", oldest_key)
            self._remove(oldest_key)
            self._metrics.increment(f"{MetricCategories.CACHE}.lru_eviction")

    def evict(self, name: str) -> bool:
        """Remove the entry for a name. Returns True if one was removed."""
        key = normalize_cache_key(name)
        if key not in self._entries:
            return False
        self._remove(key)
        self._metrics.increment(f"{MetricCategories.CACHE}.eviction")
        logger.debug("Evicted cache entry %s", key)
        return True

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()
        self._total_cost = 0

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._total_cost -= entry.cost
