"""Public interface definitions for every collaborator of the coordinator.

The coordinator reaches the browser, the page agent, the cache and durable
storage exclusively through the abstract base classes defined here.
Concrete adapters live in ``moctale_relay/providers/`` and are wired in
``moctale_relay/main.py``; unit tests inject fakes instead.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementation (in moctale_relay/providers/)
    ─────────────────────────────────────────────────────────────────────
    ICacheProvider     →  MemoryCacheProvider
    IStorageProvider   →  SQLiteStorageProvider
    IBrowserRuntime    →  LocalBrowserRuntime
    IPageAgent         →  MoctalePageAgent
"""

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.interfaces.cache_provider import ICacheProvider
from moctale_relay.interfaces.page_agent import IPageAgent
from moctale_relay.interfaces.storage_provider import IStorageProvider

__all__ = [
    "IBrowserRuntime",
    "ICacheProvider",
    "IPageAgent",
    "IStorageProvider",
]
