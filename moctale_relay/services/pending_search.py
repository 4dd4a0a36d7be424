"""Pending-search handoff between the context menu and the next UI launch.

A single durable slot.  The context-menu trigger writes the selected text;
the UI reads it once on startup and clears it after use.  A record older
than the staleness window reads as absent, so a long-forgotten selection
cannot resurrect an unwanted search.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from pydantic import ValidationError

from moctale_relay.interfaces.storage_provider import IStorageProvider
from moctale_relay.models.browser import PendingSearchRecord
from moctale_relay.utils.logging import get_logger

PENDING_SEARCH_KEY = "pendingSearch"
PENDING_SEARCH_MAX_AGE_SECONDS = 5 * 60.0


class PendingSearchStore:
    """Single-slot pending-search record with an age-based expiry check."""

    def __init__(
        self,
        storage: IStorageProvider,
        max_age_seconds: float = PENDING_SEARCH_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._max_age = max_age_seconds
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def write(self, query: str) -> None:
        """Overwrite the slot with *query*, stamped now."""
        record = PendingSearchRecord(query=query, created_at=self._clock())
        await self._storage.set(PENDING_SEARCH_KEY, record.to_wire())
        self._logger.info("pending_search_written", length=len(query))

    async def read_if_fresh(self) -> str | None:
        """Return the stored query unless it is missing or stale.

        Never mutates storage; a stale record stays until :meth:`clear`
        or the next :meth:`write`.
        """
        raw = await self._storage.get(PENDING_SEARCH_KEY)
        if not raw:
            return None
        try:
            record = PendingSearchRecord.model_validate(raw)
        except ValidationError as exc:
            self._logger.warning("pending_search_unreadable", error=str(exc)[:200])
            return None

        if self._clock() - record.created_at >= self._max_age:
            return None
        return record.query

    async def clear(self) -> None:
        await self._storage.remove(PENDING_SEARCH_KEY)
