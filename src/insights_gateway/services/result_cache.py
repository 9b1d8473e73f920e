"""In-memory TTL cache for completed insight results."""

from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import logfire

DEFAULT_TTL_SECONDS = 3600


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class CacheEntry:
    """A cached value and its expiry bookkeeping."""

    value: Any
    created_at: datetime
    expires_at: datetime
    access_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class ResultCache(ABC):
    """Key/value store with time-to-live semantics."""

    @abstractmethod
    def get(self, key: str) -> Any | None: ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl_override: int | None = None) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def __len__(self) -> int: ...


class InMemoryResultCache(ResultCache):
    """Process-local cache; expired entries are dropped lazily.

    Not locked: it is only touched from the event loop thread.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry
            max_entries: Optional bound; least recently used entries are evicted
            clock: Source of the current time
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.metrics = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
            "total_requests": 0,
        }
        self.logger = logfire

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        self.metrics["total_requests"] += 1
        entry = self._entries.get(key)
        if entry is None:
            self.metrics["misses"] += 1
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self.metrics["expirations"] += 1
            self.metrics["misses"] += 1
            self.logger.debug("Removed expired cache entry", key=key)
            return None

        entry.access_count += 1
        self._entries.move_to_end(key)
        self.metrics["hits"] += 1
        self.logger.debug("Cache hit", key=key)
        return entry.value

    def set(self, key: str, value: Any, ttl_override: int | None = None) -> None:
        """Store a value under the TTL policy.

        Args:
            key: Cache key
            value: Value to cache
            ttl_override: Optional TTL override in seconds
        """
        now = self._clock()
        ttl = ttl_override if ttl_override is not None else self.ttl_seconds
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=value, created_at=now, expires_at=now + timedelta(seconds=ttl)
        )
        self._cleanup_expired(now)
        self._enforce_size_limit()
        self.logger.debug("Cached result", key=key, ttl_seconds=ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()
        self.logger.info("Cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key) if isinstance(key, str) else None
        return entry is not None and not entry.is_expired(self._clock())

    def _cleanup_expired(self, now: datetime) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
            self.metrics["expirations"] += 1

    def _enforce_size_limit(self) -> None:
        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            self.metrics["evictions"] += 1
            self.logger.debug("Evicted cache entry", key=key)

    def get_metrics(self) -> dict[str, Any]:
        """Get cache metrics."""
        hit_rate = self.metrics["hits"] / max(self.metrics["total_requests"], 1)
        return {
            **self.metrics,
            "hit_rate": hit_rate,
            "num_entries": len(self._entries),
            "max_entries": self.max_entries,
        }
