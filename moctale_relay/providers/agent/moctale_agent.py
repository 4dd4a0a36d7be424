"""Page-context agent for moctale.in implementing IPageAgent.

Runs "inside" a Moctale tab: every HTTP call goes out with the browser's
session cookies, so the relay never handles credentials itself.  Answers
coordinator messages with plain dicts in envelope shape and never raises.

Upstream endpoints::

    GET /api/search?q={query}&page={page}
    GET /api/content/{slug}
    GET /api/me                              (auth probe only)
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from moctale_relay.interfaces.page_agent import IPageAgent
from moctale_relay.models.envelope import ErrorKind, MediaDetails, failure
from moctale_relay.providers.agent.auth_probes import AuthDetector, AuthProbe, default_auth_probes
from moctale_relay.providers.agent.page_session import PageSession
from moctale_relay.services.normalizer import normalize_details, normalize_search_page
from moctale_relay.utils.logging import get_logger

_SEARCH_PATH = "/api/search"
_CONTENT_PATH = "/api/content"


class MoctalePageAgent(IPageAgent):
    """Agent injected into one Moctale tab.

    The ``httpx.AsyncClient`` is injected for testability; it is expected to
    carry the site's base URL and the browser's cookie jar.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        page_url: str,
        probes: list[AuthProbe] | None = None,
    ) -> None:
        self._session = PageSession(http_client, page_url)
        self._detector = AuthDetector(probes if probes is not None else default_auth_probes())
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- IPageAgent implementation ---------------------------------------------

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any]:
        msg_type = message.get("type")
        if msg_type == "PING":
            return {"pong": True}

        try:
            if msg_type == "CHECK_AUTH":
                return await self.check_auth()
            if msg_type == "SEARCH" and message.get("method") == "dom":
                return await self.search_via_dom(message.get("query") or "")
            if msg_type == "SEARCH":
                return await self.search(message.get("query") or "", message.get("page") or 1)
            if msg_type == "GET_DETAILS":
                return await self.get_details(message.get("slug") or message.get("movieId"))
            return failure(
                ErrorKind.UNKNOWN_MESSAGE_TYPE, f"Unknown message type: {msg_type}"
            ).to_wire()
        except Exception as exc:
            self._logger.error("agent_message_failed", type=msg_type, error=str(exc))
            return failure(
                ErrorKind.AGENT_ERROR, str(exc) or "An unexpected error occurred"
            ).to_wire()

    # -- Operations --------------------------------------------------------------

    async def check_auth(self) -> dict[str, Any]:
        status = await self._detector.detect(self._session)
        return status.to_wire()

    async def search(self, query: str, page: int = 1) -> dict[str, Any]:
        """Search the catalog through the site's API."""
        endpoint = f"{_SEARCH_PATH}?q={quote(query, safe='')}&page={page}"
        try:
            response = await self._session.get(endpoint)
            if response.is_success:
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError("search response is not an object")
                results = normalize_search_page(payload, endpoint=endpoint)
                self._logger.info("agent_search_complete", query=query, results=len(results.results))
                return results.to_wire()
            if response.status_code in (401, 403):
                return failure(
                    ErrorKind.UNAUTHORIZED, "Session expired. Please log in again."
                ).to_wire()
            return failure(
                ErrorKind.API_ERROR, f"Search failed with status {response.status_code}"
            ).to_wire()
        except httpx.HTTPError as exc:
            self._logger.warning("agent_search_failed", query=query, error=str(exc))
            return failure(ErrorKind.NETWORK_ERROR, str(exc) or "Network error occurred").to_wire()
        except ValueError as exc:
            self._logger.warning("agent_search_unreadable", query=query, error=str(exc)[:200])
            return failure(ErrorKind.API_ERROR, "Unexpected search response").to_wire()

    async def search_via_dom(self, query: str) -> dict[str, Any]:
        """Markup-based search.  Not supported: the API is the only search path."""
        return {
            **failure(
                ErrorKind.DOM_SCRAPING_NOT_IMPLEMENTED,
                "DOM-based search requires site structure analysis. "
                "Please provide API endpoint details.",
            ).to_wire(),
            "method": "dom",
        }

    async def get_details(self, slug: str | None) -> dict[str, Any]:
        """Fetch one catalog entry by slug (e.g. ``"salaar-part-1-ceasefire-2023"``)."""
        if not slug:
            return failure(ErrorKind.INVALID_SLUG, "Movie slug is required").to_wire()

        endpoint = f"{_CONTENT_PATH}/{quote(str(slug), safe='')}"
        try:
            response = await self._session.get(endpoint)
            if response.is_success:
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError("content response is not an object")
                details = MediaDetails(data=normalize_details(payload), method="api")
                return details.to_wire()
            if response.status_code in (401, 403):
                return failure(
                    ErrorKind.UNAUTHORIZED, "Session expired. Please log in again."
                ).to_wire()
            if response.status_code == 404:
                return failure(ErrorKind.NOT_FOUND, "Movie not found").to_wire()
            self._logger.warning("agent_details_status", slug=slug, status=response.status_code)
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning("agent_details_failed", slug=slug, error=str(exc))

        return failure(ErrorKind.FETCH_FAILED, "Failed to fetch movie details").to_wire()
