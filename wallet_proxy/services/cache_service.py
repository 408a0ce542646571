"""
Response cache for the wallet proxy.

A process-wide, short-TTL key/value store that shields upstreams from
duplicate requests. Entries are not swept in the background: a lookup past
expiry is a miss, and the next successful fetch overwrites the entry.
Concurrent writers race harmlessly; the last write wins.
"""

import logging
import time
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar('T')


class CacheEntry(Generic[T]):
    """Cache entry with value and expiration time."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: T, ttl: float, now: float):
        """
        Initialize a cache entry.

        Args:
            value: The value to cache
            ttl: Time to live in seconds
            now: Current clock reading
        """
        self.value = value
        self.expires_at = now + ttl

    def is_expired(self, now: float) -> bool:
        """Check if the cache entry is expired."""
        return now >= self.expires_at


class ResponseCache:
    """
    In-memory response cache with per-entry TTL.

    Features:
    - Keys composed from an endpoint name and every result-affecting parameter
    - Expired entries behave as misses
    - A size bound that drops the soonest-expiring entry when full
    """

    def __init__(
        self,
        default_ttl: float = 8.0,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Default time-to-live for entries in seconds
            max_size: Maximum number of entries kept
            clock: Monotonic time source (injectable for tests)
            logger: Optional logger instance
        """
        self.default_ttl = default_ttl
        self.max_size = max(1, max_size)
        self._clock = clock
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self.hits = 0
        self.misses = 0
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def build_key(endpoint: str, **params: Any) -> str:
        """Compose a cache key from an endpoint name and its query parameters."""
        parts = [endpoint]
        for name in sorted(params):
            parts.append(f"{name}={params[name]}")
        return ":".join(parts)

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            The cached value, or None on a miss or expired entry
        """
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            self.misses += 1
            self.logger.debug(f"Cache miss for key: {key}")
            return None

        self.hits += 1
        self.logger.debug(f"Cache hit for key: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (uses default_ttl if None)
        """
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._prune_oldest()

        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value, ttl, self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def _prune_oldest(self) -> None:
        """Remove the entry closest to expiry to respect the size limit."""
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].expires_at)
        del self._entries[oldest_key]
        self.logger.debug(f"Pruned oldest cache entry: {oldest_key}")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        total = self.hits + self.misses
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": self.hits / total if total > 0 else 0,
        }
