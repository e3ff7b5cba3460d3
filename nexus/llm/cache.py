"""
TTL Cache — In-memory key-value store with expiry and stale reads.

Fronts the slow LLM lookups (regional city lists, opportunity feed) so a
country chosen twice in a day costs one API call.

Two read paths:
- get(key)        → value only while fresh, otherwise None
- get_stale(key)  → value regardless of age (fallback when the API fails)

Expired entries are therefore kept until evicted by capacity (LRU) or
cleared explicitly, so the stale fallback has something to serve.

Usage:
    from nexus.llm.cache import TTLCache

    cache = TTLCache(default_ttl_seconds=3600, max_entries=500)
    cache.set("cities_cache_Vietnam", ["Da Nang", "Hue"], ttl_seconds=86400)
    cache.get("cities_cache_Vietnam")
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueCache(Protocol):
    """Interface the services depend on; TTLCache is the default."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def get_stale(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ...


# ---------------------------------------------------------------------------
# Cache Entry
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    """A cached value with expiration metadata."""

    key: str
    value: Any
    created_at: float
    expires_at: float
    hit_count: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


# ---------------------------------------------------------------------------
# TTL Cache
# ---------------------------------------------------------------------------

class TTLCache:
    """
    LRU cache with per-entry TTL.

    Single event loop only; wrap access with a lock for threaded use.
    `clock` is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 3600,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._default_ttl = default_ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

        # newest at end
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

        self._hits: int = 0
        self._misses: int = 0
        self._stale_hits: int = 0
        self._evictions: int = 0
        self._stores: int = 0

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # --- Core Operations ---

    def get(self, key: str) -> Optional[Any]:
        """Return the value if present and not expired, otherwise None."""
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            self._misses += 1
            return None

        self._entries.move_to_end(key)
        entry.hit_count += 1
        self._hits += 1

        logger.debug(
            "cache_hit",
            extra={
                "key": key,
                "hit_count": entry.hit_count,
                "age_seconds": round(self._clock() - entry.created_at, 1),
            },
        )
        return entry.value

    def get_stale(self, key: str) -> Optional[Any]:
        """Return the value if present, ignoring expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        self._stale_hits += 1
        logger.debug(
            "cache_stale_read",
            extra={
                "key": key,
                "expired": entry.is_expired(self._clock()),
            },
        )
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a value, refreshing its TTL. Evicts LRU entries at capacity."""
        now = self._clock()
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds

        if key in self._entries:
            del self._entries[key]

        while len(self._entries) >= self._max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("cache_eviction", extra={"key": evicted_key})

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl,
        )
        self._stores += 1

    def invalidate(self, key: str) -> bool:
        """Remove a specific entry. Returns True if found."""
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    # --- Stats ---

    def get_stats(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "max_entries": self._max_entries,
            "default_ttl_seconds": self._default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "stale_hits": self._stale_hits,
            "hit_rate": round(self.hit_rate, 3),
            "evictions": self._evictions,
            "stores": self._stores,
        }
