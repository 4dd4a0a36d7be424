"""The slice of a browser tab the page agent can see.

A :class:`PageSession` bundles what code running inside a Moctale page has
access to: the page URL, the page markup, and an HTTP client that carries
the browser's cookies (so every request is authenticated with the session
the user already established).
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from moctale_relay.utils.logging import get_logger

_BASE_HEADERS = {
    "Accept": "*/*",
    "Content-Type": "application/json",
}

_CSRF_META_NAMES = ("csrf-token", "_csrf", "csrf")


def extract_csrf_token(soup: BeautifulSoup) -> str | None:
    """Find a CSRF token in meta tags or the Next.js ``__NEXT_DATA__`` blob."""
    for name in _CSRF_META_NAMES:
        meta = soup.find("meta", attrs={"name": name})
        if meta is not None and meta.get("content"):
            return meta["content"]

    for script in soup.select('script[id="__NEXT_DATA__"]'):
        try:
            data = json.loads(script.get_text())
        except json.JSONDecodeError:
            continue
        token = (data.get("props") or {}).get("csrfToken") if isinstance(data, dict) else None
        if token:
            return token

    return None


class PageSession:
    """Network and markup access of one Moctale tab.

    Parameters
    ----------
    http_client:
        Client whose cookie jar holds the browser session.  Shared across
        tabs; the session never closes it.
    page_url:
        URL of the page the agent was injected into.
    """

    def __init__(self, http_client: httpx.AsyncClient, page_url: str) -> None:
        self._http = http_client
        self._page_url = page_url
        self._markup: BeautifulSoup | None = None
        self._markup_loaded = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def page_url(self) -> str:
        return self._page_url

    def cookie(self, name: str) -> str | None:
        """Return the value of cookie *name* from the browser session."""
        return self._http.cookies.get(name)

    async def page_markup(self) -> BeautifulSoup | None:
        """Return the parsed markup of the current page (loaded once)."""
        if not self._markup_loaded:
            self._markup_loaded = True
            try:
                response = await self._http.get(self._page_url, follow_redirects=True)
                if response.is_success:
                    self._markup = BeautifulSoup(response.text, "html.parser")
                else:
                    self._logger.warning(
                        "page_markup_unavailable",
                        url=self._page_url,
                        status=response.status_code,
                    )
            except httpx.HTTPError as exc:
                self._logger.warning("page_markup_failed", url=self._page_url, error=str(exc))
        return self._markup

    async def request_headers(self) -> dict[str, str]:
        """Headers for API requests, with the page's CSRF token when present."""
        headers = dict(_BASE_HEADERS)
        soup = await self.page_markup()
        token = extract_csrf_token(soup) if soup is not None else None
        if token:
            headers["X-CSRF-Token"] = token
            headers["csrf-token"] = token
        return headers

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """``GET`` *path* on the site with the session cookies and API headers."""
        headers = await self.request_headers()
        return await self._http.get(path, headers=headers, **kwargs)
