"""Read-through LRU cache with TTL for coordinate-keyed spatial lookups.

Keys are coordinates quantized to a fixed number of decimals, so near-duplicate
queries share an entry. The cache is shared by concurrent callers without a
lock: concurrent misses on one key may each load and write the same value,
last write wins.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class CacheStatistics(BaseModel):
    """Point-in-time statistics for one cache tier."""

    name: str
    size: int = Field(ge=0)
    max_size: int = Field(gt=0)
    hits: int = Field(0, ge=0)
    misses: int = Field(0, ge=0)
    evictions: int = Field(0, ge=0)
    expirations: int = Field(0, ge=0)
    hit_ratio: float = Field(0.0, ge=0.0, le=1.0)
    status: str = Field("healthy", description="'healthy' or 'full'")

    @property
    def requests(self) -> int:
        return self.hits + self.misses


class _CacheEntry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float):
        self.value = value
        self.expires_at = expires_at


class SpatialCache:
    """LRU cache with per-entry TTL and hit/miss/eviction statistics.

    Args:
        name: Tier name reported in statistics and health output
        ttl_seconds: Lifetime of an entry from the moment it is written
        max_entries: Capacity; the least recently used entry is evicted beyond it
        key_precision: Decimal places kept when quantizing coordinates into keys
        clock: Monotonic time source in seconds, injectable for tests
    """

    def __init__(self, name: str, ttl_seconds: float = 1800.0, max_entries: int = 1000,
                 key_precision: int = 6, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.key_precision = key_precision
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def make_key(self, latitude: float, longitude: float, prefix: str = "") -> str:
        """Quantize a coordinate into a cache key, e.g. ``-37.813600:144.963100``."""
        p = self.key_precision
        key = f"{round(latitude, p):.{p}f}:{round(longitude, p):.{p}f}"
        return f"{prefix}:{key}" if prefix else key

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or an expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._expirations += 1
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = _CacheEntry(value, self._clock() + self.ttl_seconds)

        while len(self._entries) > self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"{self.name} cache evicted {evicted_key}")

    async def get_or_load(self, key: str,
                          loader: Callable[[], Awaitable[Any]]) -> Tuple[Any, bool]:
        """Read-through lookup.

        On a miss ``loader`` is awaited and its result stored. Loader
        exceptions propagate and nothing is stored; a ``None`` result is
        returned but not cached.

        Returns:
            Tuple of (value, cache_hit)
        """
        value = self.get(key)
        if value is not None:
            logger.debug(f"{self.name} cache hit for {key}")
            return value, True

        value = await loader()
        if value is not None:
            self.set(key, value)
        return value, False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry.expires_at

    def get_statistics(self) -> CacheStatistics:
        requests = self._hits + self._misses
        return CacheStatistics(
            name=self.name,
            size=len(self._entries),
            max_size=self.max_entries,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
            hit_ratio=round(self._hits / requests, 4) if requests else 0.0,
            status="full" if len(self._entries) >= self.max_entries else "healthy",
        )

    def clear(self) -> None:
        """Remove every entry; statistics counters are kept."""
        self._entries.clear()
        logger.info(f"{self.name} cache cleared")
