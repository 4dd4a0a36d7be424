"""Abstract base class for durable key-value storage.

Stands in for the host browser's persistent extension storage.  It is the
only state that survives a coordinator restart; the pending-search handoff
is its sole user.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IStorageProvider(ABC):
    """Contract for a durable JSON key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the JSON value stored under *key*, or ``None``."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store the JSON-serialisable *value* under *key*, replacing any old value."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete *key*.  No-op if it does not exist."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
