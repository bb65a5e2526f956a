"""
Bounded in-memory cache with TTL expiry and least-recently-used eviction.

Used for idempotent lookups such as credential validation results. Entries
are visible only while unexpired; reading a stale entry removes it.
"""

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar, Union

from ..config.constants import CACHE_DEFAULT_TTL, CACHE_MAX_SIZE

logger = logging.getLogger(__name__)

T = TypeVar('T')

_MISSING: Any = object()


@dataclass
class CacheConfig:
    max_size: int = CACHE_MAX_SIZE
    default_ttl: float = CACHE_DEFAULT_TTL


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float
    last_accessed: float


@dataclass
class CacheStats:
    """Statistics for a cache instance."""
    size: int
    max_size: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class BoundedCache(Generic[T]):
    """
    TTL + LRU cache.

    ``get_or_compute`` does not coalesce concurrent misses: every caller that
    misses on the same key runs ``compute`` itself.
    """

    def __init__(
        self,
        name: str = "default",
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.config = config or CacheConfig()
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """Return the cached value, or ``default`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return default

        now = self._clock()
        if now >= entry.expires_at:
            del self._entries[key]
            self._misses += 1
            return default

        entry.last_accessed = now
        self._hits += 1
        return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Insert or overwrite a value; evicts the LRU entry when a new key arrives at capacity."""
        now = self._clock()
        if key not in self._entries and len(self._entries) >= self.config.max_size:
            self._evict_lru()

        ttl = self.config.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=now + ttl, last_accessed=now)

    def has(self, key: str) -> bool:
        """Check presence without counting a hit or miss."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return False
        return True

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def cleanup(self) -> int:
        """Remove all expired entries, returning how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(
                f"Cache {self.name} removed {len(expired)} expired entries",
                extra={"cache": self.name, "removed": len(expired)}
            )
        return len(expired)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Union[T, Awaitable[T]]],
        ttl: Optional[float] = None
    ) -> T:
        """Return the cached value or compute, cache and return it."""
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        value = compute()
        if inspect.isawaitable(value):
            value = await value
        self.set(key, value, ttl)
        return value

    def get_stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            size=len(self._entries),
            max_size=self.config.max_size,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            hit_rate=self._hits / total if total else 0.0,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_lru(self) -> None:
        oldest_key = None
        oldest_access = None
        for key, entry in self._entries.items():
            if oldest_access is None or entry.last_accessed < oldest_access:
                oldest_key = key
                oldest_access = entry.last_accessed

        if oldest_key is not None:
            del self._entries[oldest_key]
            self._evictions += 1
            logger.debug(
                f"Cache {self.name} evicted least recently used entry",
                extra={"cache": self.name, "key": oldest_key}
            )


class CacheRegistry:
    """Named caches shared by every caller that references the same name."""

    def __init__(
        self,
        default_config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.default_config = default_config
        self._clock = clock
        self.caches: Dict[str, BoundedCache] = {}

    def get_or_create(self, name: str, config: Optional[CacheConfig] = None) -> BoundedCache:
        if name not in self.caches:
            self.caches[name] = BoundedCache(
                name, config or self.default_config, clock=self._clock
            )
        return self.caches[name]

    def get(self, name: str) -> Optional[BoundedCache]:
        return self.caches.get(name)

    def get_all(self) -> Dict[str, BoundedCache]:
        return dict(self.caches)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: cache.get_stats().to_dict() for name, cache in self.caches.items()}

    def clear_all(self) -> None:
        for cache in self.caches.values():
            cache.clear()

    def cleanup_all(self) -> int:
        return sum(cache.cleanup() for cache in self.caches.values())
