"""Request router — the coordinator's cache-and-routing core.

Every agent-bound request kind goes through the same pipeline:

    validate ──invalid──→ failure (no cache, no agent)
        │
    cache.get(category, key) ──hit──→ cached envelope, cached=True
        │ miss
    single-flight: join an identical in-flight call if there is one
        │
    locator.send(message) → parse reply
        success → cache.set(category, envelope, key) → envelope
        failure → returned untouched, never cached

Identical concurrent misses share one agent round-trip.  The shared call
is shielded, so it completes (and lands in the cache) even when every
requester has gone away.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from typing import Any

import structlog

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.interfaces.cache_provider import ICacheProvider
from moctale_relay.models.envelope import (
    Acknowledgement,
    Envelope,
    ErrorKind,
    Success,
    failure,
)
from moctale_relay.services.agent_locator import AgentLocator
from moctale_relay.services.normalizer import (
    parse_details_reply,
    parse_search_reply,
    parse_session_reply,
)
from moctale_relay.utils.logging import get_logger

# Cache categories.
SESSION_STATE = "sessionState"
SEARCH_RESULTS = "searchResults"
MOVIE_DETAILS = "movieDetails"

_SESSION_KEY = "status"

ReplyParser = Callable[[dict[str, Any]], Envelope]


def normalize_query(query: str) -> str:
    """Cache identity of a search query: trimmed and lower-cased."""
    return query.strip().lower()


class RequestRouter:
    """Routes typed requests to the cache or the page agent.

    Parameters
    ----------
    cache:
        Response cache, owned by the coordinator and injected here.
    locator:
        Finds the target tab and talks to its agent.
    runtime:
        Used directly only by the tab-opening operations.
    base_url:
        Site root, e.g. ``https://www.moctale.in``.
    """

    def __init__(
        self,
        cache: ICacheProvider,
        locator: AgentLocator,
        runtime: IBrowserRuntime,
        base_url: str,
    ) -> None:
        self._cache = cache
        self._locator = locator
        self._runtime = runtime
        self._base_url = base_url.rstrip("/")
        self._in_flight: dict[str, asyncio.Future] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Agent-bound operations
    # ------------------------------------------------------------------

    async def check_session(self) -> Envelope:
        """Is the browser session logged in to Moctale?"""
        return await self._cached_call(
            SESSION_STATE,
            (_SESSION_KEY,),
            {"type": "CHECK_AUTH"},
            parse_session_reply,
        )

    async def search_movies(self, query: str | None) -> Envelope:
        """Search the catalog; equivalent queries share one cache slot."""
        if not query or not query.strip():
            return failure(ErrorKind.INVALID_QUERY, "Please enter a search term")

        normalized = normalize_query(query)
        return await self._cached_call(
            SEARCH_RESULTS,
            (normalized,),
            {"type": "SEARCH", "query": normalized, "page": 1},
            parse_search_reply,
        )

    async def get_movie_details(self, movie_id: str | None) -> Envelope:
        """Details of one catalog entry, keyed by its raw id (the slug)."""
        if not movie_id:
            return failure(ErrorKind.INVALID_ID, "Movie ID is required")

        return await self._cached_call(
            MOVIE_DETAILS,
            (movie_id,),
            {"type": "GET_DETAILS", "slug": movie_id, "movieId": movie_id},
            parse_details_reply,
        )

    # ------------------------------------------------------------------
    # Tab operations (fire-and-forget)
    # ------------------------------------------------------------------

    async def open_login(self) -> Envelope:
        await self._runtime.create_tab(f"{self._base_url}/login")
        return Acknowledgement()

    async def open_site(self) -> Envelope:
        """Focus the existing Moctale tab, or open the site root."""
        tab = await self._locator.locate_tab()
        if tab is not None:
            await self._runtime.activate_tab(tab.id)
            await self._runtime.focus_window(tab.window_id)
        else:
            await self._runtime.create_tab(f"{self._base_url}/")
        return Acknowledgement()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _cached_call(
        self,
        category: str,
        key_args: tuple[str, ...],
        message: dict[str, Any],
        parse: ReplyParser,
    ) -> Envelope:
        cached = await self._cache.get(category, *key_args)
        if cached is not None:
            self._logger.debug("router_cache_hit", category=category)
            return cached.model_copy(update={"cached": True})

        key = self._cache.make_key(category, *key_args)
        shared = self._in_flight.get(key)
        if shared is None:
            shared = asyncio.ensure_future(self._fetch(category, key_args, message, parse))
            self._in_flight[key] = shared
            shared.add_done_callback(functools.partial(self._on_fetch_done, key))
        else:
            self._logger.debug("router_joined_in_flight", key=key)

        return await asyncio.shield(shared)

    def _on_fetch_done(self, key: str, done: asyncio.Future) -> None:
        """Forget a finished shared call and log its error, if any."""
        self._in_flight.pop(key, None)
        if done.cancelled():
            return
        exc = done.exception()
        if exc is not None:
            self._logger.warning(
                "router_fetch_failed", key=key, error=str(exc) or type(exc).__name__
            )

    async def _fetch(
        self,
        category: str,
        key_args: tuple[str, ...],
        message: dict[str, Any],
        parse: ReplyParser,
    ) -> Envelope:
        reply = await self._locator.send(message)
        envelope = parse(reply)
        if isinstance(envelope, Success):
            await self._cache.set(category, envelope, *key_args)
        else:
            self._logger.info(
                "router_agent_failure",
                category=category,
                error=str(getattr(envelope.error, "value", envelope.error)),
            )
        return envelope
