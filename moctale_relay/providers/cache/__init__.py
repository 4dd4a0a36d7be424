"""Cache providers.

In-memory TTL cache used to avoid redundant agent round-trips: a repeated
search or details lookup is answered from memory until its category TTL runs
out.  MemoryCacheProvider is not shared across processes, which is fine for
the single coordinator instance per browser session.
"""

from moctale_relay.providers.cache.memory_cache import DEFAULT_CATEGORY_TTLS, MemoryCacheProvider

__all__ = ["DEFAULT_CATEGORY_TTLS", "MemoryCacheProvider"]
