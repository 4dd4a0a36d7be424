"""In-memory cache provider using one ``cachetools.TTLCache`` per category.

Simple and fast; the contents are volatile by nature, which matches the
coordinator's lifecycle (the host may stop and restart it at any moment, so
the cache must always be treated as possibly empty).
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any, NamedTuple

import structlog
from cachetools import TTLCache

from moctale_relay.interfaces.cache_provider import ICacheProvider
from moctale_relay.utils.logging import get_logger

# Staleness tolerance differs per category: session status is cheap to
# recheck and likely to change, item details are expensive and stable.
DEFAULT_CATEGORY_TTLS: dict[str, float] = {
    "sessionState": 60.0,
    "searchResults": 5 * 60.0,
    "movieDetails": 15 * 60.0,
}

# The TTLCache only purges; it keeps entries this much past their own
# expiry, which `get` checks exactly.
_PURGE_GRACE_SECONDS = 1.0


class _Entry(NamedTuple):
    value: Any
    expires_at: float


class MemoryCacheProvider(ICacheProvider):
    """Category-partitioned TTL cache backed by ``cachetools.TTLCache``.

    Each category gets its own ``TTLCache`` so it can carry its own
    time-to-live; clearing a category drops that bucket's contents only.

    Parameters
    ----------
    ttls:
        Time-to-live in seconds per category name.
    default_ttl:
        TTL for categories missing from *ttls*.  Defaults to the search TTL.
    max_size:
        Maximum number of entries per category before the least-recently
        used one is evicted.
    timer:
        Clock returning seconds.  Tests inject a fake clock here.
    """

    def __init__(
        self,
        ttls: Mapping[str, float] | None = None,
        default_ttl: float | None = None,
        max_size: int = 512,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttls = dict(DEFAULT_CATEGORY_TTLS if ttls is None else ttls)
        self._default_ttl = (
            default_ttl
            if default_ttl is not None
            else self._ttls.get("searchResults", DEFAULT_CATEGORY_TTLS["searchResults"])
        )
        self._max_size = max_size
        self._timer = timer
        self._buckets: dict[str, TTLCache[str, _Entry]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def ttl_for(self, category: str) -> float:
        """Return the time-to-live applied to *category*."""
        return self._ttls.get(category, self._default_ttl)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, category: str, *args: Any) -> Any | None:
        """Return the live value for ``(category, *args)`` or ``None``.

        An entry is live up to and including its expiry instant.  Expired
        entries are dropped on lookup, so a stale entry stays absent.
        """
        key = self.make_key(category, *args)
        bucket = self._buckets.get(category)
        if bucket is None:
            self._logger.debug("cache_miss", key=key)
            return None

        bucket.expire()
        entry = bucket.get(key)
        if entry is not None and self._timer() > entry.expires_at:
            del bucket[key]
            entry = None
        if entry is None:
            self._logger.debug("cache_miss", key=key)
            return None
        self._logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, category: str, value: Any, *args: Any) -> None:
        """Insert or overwrite ``(category, *args)``; expiry restarts from now."""
        key = self.make_key(category, *args)
        ttl = self.ttl_for(category)
        self._bucket(category)[key] = _Entry(value, self._timer() + ttl)
        self._logger.debug("cache_set", key=key, ttl=ttl)

    async def clear(self) -> None:
        """Drop every category."""
        self._buckets.clear()
        self._logger.debug("cache_cleared")

    async def clear_category(self, category: str) -> None:
        """Drop the entries of *category* only (no-op for unknown categories)."""
        bucket = self._buckets.get(category)
        if bucket is not None:
            bucket.clear()
        self._logger.debug("cache_category_cleared", category=category)

    def get_provider_name(self) -> str:
        return "memory_cache"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _bucket(self, category: str) -> TTLCache[str, _Entry]:
        bucket = self._buckets.get(category)
        if bucket is None:
            bucket = TTLCache(
                maxsize=self._max_size,
                ttl=self.ttl_for(category) + _PURGE_GRACE_SECONDS,
                timer=self._timer,
            )
            self._buckets[category] = bucket
        return bucket

    def entry_count(self) -> int:
        """Number of stored entries, expired-but-unpurged ones included."""
        return sum(len(bucket) for bucket in self._buckets.values())
