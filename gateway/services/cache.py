"""
CacheManager - Async-compatible response cache with TTL and tag/path invalidation.

Features:
- Memory-based cache with oldest-first eviction
- TTL (revalidation window) per entry
- Stale-if-error: expired entries are kept for a grace period so a failed
  refresh can still serve the previous value
- Tag and path invalidation: dropping a label drops every entry carrying it
"""

import asyncio
import hashlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    timestamp: datetime
    ttl: timedelta
    stale_until: datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    paths: frozenset[str] = field(default_factory=frozenset)

    def is_stale(self, now: datetime) -> bool:
        """Check if entry is past its revalidation window."""
        return now >= self.timestamp + self.ttl

    def is_valid(self, now: datetime) -> bool:
        """Check if entry is still usable (not past stale period)."""
        return now <= self.stale_until


@dataclass
class CacheResult(Generic[T]):
    """Result from cache lookup."""

    data: T
    is_stale: bool


class CacheManager:
    """
    Tag-aware response cache.

    Usage:
        cache = CacheManager(max_size=500)

        result = await cache.get(key)
        if result and not result.is_stale:
            return result.data

        data = await fetch_data()
        await cache.set(key, data, ttl=timedelta(seconds=60), tags=["strapi", "tours"])

        # Publish webhook
        await cache.revalidate_tag("tours")
    """

    def __init__(
        self,
        prefix: str = "strapi_",
        max_size: int = 500,
        stale_while_revalidate: bool = True,
        stale_grace: timedelta = timedelta(minutes=5),
        debug: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._memory: dict[str, CacheEntry[Any]] = {}
        self._prefix = prefix
        self._max_size = max_size
        self._stale_while_revalidate = stale_while_revalidate
        self._stale_grace = stale_grace
        self._debug = debug
        self._clock = clock
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    def generate_key(self, url: str) -> str:
        """Generate a cache key from the request URL."""
        if len(url) > 200:
            hash_val = hashlib.md5(url.encode()).hexdigest()[:16]
            return f"{self._prefix}{hash_val}"
        return f"{self._prefix}{url}"

    async def get(self, key: str) -> CacheResult[Any] | None:
        """
        Get value from cache.

        Returns CacheResult if found and within its stale period, None otherwise.
        """
        async with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key[:50]}...")
                return None

            now = self._clock()
            if not entry.is_valid(now):
                del self._memory[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key[:50]}...")
                return None

            is_stale = entry.is_stale(now)
            if is_stale:
                self._stats.stale_hits += 1
                self._log(f"STALE HIT: {key[:50]}...")
            else:
                self._stats.hits += 1
                self._log(f"HIT: {key[:50]}...")

            return CacheResult(data=entry.data, is_stale=is_stale)

    async def set(
        self,
        key: str,
        data: Any,
        ttl: timedelta,
        tags: Iterable[str] = (),
        paths: Iterable[str] = (),
    ) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            data: Data to cache
            ttl: Revalidation window; zero stores an entry that is stale at once
            tags: Invalidation tags the entry carries
            paths: Route paths the entry feeds
        """
        now = self._clock()
        stale_until = now + ttl
        if self._stale_while_revalidate:
            stale_until += max(ttl, self._stale_grace)

        entry = CacheEntry(
            data=data,
            timestamp=now,
            ttl=ttl,
            stale_until=stale_until,
            tags=frozenset(tags),
            paths=frozenset(paths),
        )

        async with self._lock:
            if len(self._memory) >= self._max_size and key not in self._memory:
                self._evict_oldest()

            self._memory[key] = entry
            self._log(
                f"SET: {key[:50]}... (TTL: {ttl.total_seconds()}s, tags: {sorted(entry.tags)})"
            )

    async def revalidate_tag(self, tag: str) -> int:
        """Drop every entry carrying ``tag``. Returns the number dropped."""
        return await self._drop(lambda entry: tag in entry.tags, f"tag '{tag}'")

    async def revalidate_path(self, path: str) -> int:
        """Drop every entry recorded for route ``path``. Returns the number dropped."""
        return await self._drop(lambda entry: path in entry.paths, f"path '{path}'")

    async def _drop(self, predicate: Callable[[CacheEntry[Any]], bool], label: str) -> int:
        async with self._lock:
            keys = [k for k, entry in self._memory.items() if predicate(entry)]
            for key in keys:
                del self._memory[key]
            self._stats.invalidations += len(keys)

        logger.info(f"Revalidated {label}: {len(keys)} cached entries dropped")
        return len(keys)

    def _evict_oldest(self) -> None:
        if not self._memory:
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].timestamp,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:50]}...")

    def __len__(self) -> int:
        return len(self._memory)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[CacheManager] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    stale_hits: int = 0
    evictions: int = 0
    invalidations: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.stale_hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits + self.stale_hits) / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_hits": self.stale_hits,
            "evictions": self.evictions,
            "invalidations": self.invalidations,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
