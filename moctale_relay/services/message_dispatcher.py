"""Message dispatcher — the UI adapter's single entry point.

Takes an untyped ``{"type": ..., ...}`` request from the UI, routes it to
the matching :class:`RequestRouter` or :class:`PendingSearchStore`
operation, and always answers with exactly one envelope.  Nothing raised
below this layer reaches the caller: an unexpected exception becomes an
``INTERNAL_ERROR`` failure and is logged with its traceback.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import structlog

from moctale_relay.models.envelope import (
    Acknowledgement,
    Envelope,
    ErrorKind,
    PendingSearch,
    failure,
)
from moctale_relay.services.pending_search import PendingSearchStore
from moctale_relay.services.request_router import RequestRouter
from moctale_relay.utils.logging import get_logger


class MessageType(str, Enum):  # noqa: UP042
    """Request kinds the UI may send."""

    CHECK_SESSION = "CHECK_SESSION"
    SEARCH_MOVIES = "SEARCH_MOVIES"
    GET_MOVIE_DETAILS = "GET_MOVIE_DETAILS"
    OPEN_LOGIN = "OPEN_LOGIN"
    OPEN_MOCTALE = "OPEN_MOCTALE"
    GET_PENDING_SEARCH = "GET_PENDING_SEARCH"
    CLEAR_PENDING_SEARCH = "CLEAR_PENDING_SEARCH"


class MessageDispatcher:
    """Maps UI request messages onto coordinator operations."""

    def __init__(self, router: RequestRouter, pending_store: PendingSearchStore) -> None:
        self._router = router
        self._pending = pending_store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def dispatch(self, message: dict[str, Any]) -> Envelope:
        raw_type = message.get("type")
        try:
            message_type = MessageType(raw_type)
        except ValueError:
            self._logger.warning("unknown_message_type", type=raw_type)
            return failure(
                ErrorKind.UNKNOWN_MESSAGE_TYPE, f"Unknown message type: {raw_type}"
            )

        try:
            envelope = await self._route(message_type, message)
        except Exception as exc:
            self._logger.exception(
                "dispatch_failed", type=message_type.value, error=str(exc)
            )
            return failure(ErrorKind.INTERNAL_ERROR, str(exc) or "An unexpected error occurred")

        self._logger.debug(
            "message_handled",
            type=message_type.value,
            success=envelope.success,
            cached=getattr(envelope, "cached", False),
        )
        return envelope

    async def _route(self, message_type: MessageType, message: dict[str, Any]) -> Envelope:
        if message_type is MessageType.CHECK_SESSION:
            return await self._router.check_session()
        if message_type is MessageType.SEARCH_MOVIES:
            return await self._router.search_movies(message.get("query"))
        if message_type is MessageType.GET_MOVIE_DETAILS:
            return await self._router.get_movie_details(
                message.get("movieId") or message.get("slug")
            )
        if message_type is MessageType.OPEN_LOGIN:
            return await self._router.open_login()
        if message_type is MessageType.OPEN_MOCTALE:
            return await self._router.open_site()
        if message_type is MessageType.GET_PENDING_SEARCH:
            query = await self._pending.read_if_fresh()
            if query is None:
                return failure(ErrorKind.NO_PENDING_SEARCH, "No recent pending search")
            return PendingSearch(query=query)
        # CLEAR_PENDING_SEARCH
        await self._pending.clear()
        return Acknowledgement()
