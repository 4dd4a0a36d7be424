"""Abstract base class for the coordinator's response cache.

Defines the contract for the category-partitioned TTL cache that holds
session status, search results and item details.  Implementations may use
an in-process map or any other backend; the adapter pattern allows the
backend to be swapped without touching the request router.

Keys are built deterministically from a category and the identifying
arguments of a request (``"searchResults:dune"``).  Callers normalise the
arguments *before* handing them to the cache so that semantically identical
requests collide.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for the category-scoped response cache.

    All operations are async to allow for network-backed stores without
    blocking the event loop.  Every operation is total: a cache never
    raises, it only answers "absent".
    """

    @staticmethod
    def make_key(category: str, *args: Any) -> str:
        """Join *category* and *args* into the canonical cache key."""
        return ":".join([category, *(str(arg) for arg in args)])

    @abstractmethod
    async def get(self, category: str, *args: Any) -> Any | None:
        """Return the value cached for ``(category, *args)``.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
            An expired entry is purged as a side effect.
        """

    @abstractmethod
    async def set(self, category: str, value: Any, *args: Any) -> None:
        """Store *value* under ``(category, *args)``.

        The entry expires ``ttl(category)`` seconds from now; categories
        without a configured TTL use the provider's default TTL.
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry (coordinator startup / reinstall)."""

    @abstractmethod
    async def clear_category(self, category: str) -> None:
        """Remove only the entries belonging to *category*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
