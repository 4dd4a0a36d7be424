"""Shared pytest fixtures for the moctale-relay test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from moctale_relay.providers.storage.sqlite_storage import SQLiteStorageProvider

BASE_URL = "https://www.moctale.in"

# ---------------------------------------------------------------------------
# Upstream payloads
# ---------------------------------------------------------------------------

DUNE_ITEM: dict[str, Any] = {
    "name": "Dune",
    "image": "https://cdn.moctale.in/posters/dune.jpg",
    "year": 2021,
    "is_show": False,
    "slug": "dune-2021",
    "banner": "https://cdn.moctale.in/banners/dune.jpg",
}

SEARCH_PAGE: dict[str, Any] = {
    "total_pages": 3,
    "current_page": 1,
    "next_page": 2,
    "previous_page": None,
    "count": 27,
    "data": [
        DUNE_ITEM,
        {
            "name": "Dune: Prophecy",
            "image": "https://cdn.moctale.in/posters/prophecy.jpg",
            "year": 2024,
            "is_show": True,
            "slug": "dune-prophecy-2024",
        },
    ],
}

CONTENT_PAYLOAD: dict[str, Any] = {
    "movie": {
        **DUNE_ITEM,
        "rating": 8.4,
        "ratingCount": 1520,
        "description": "Paul Atreides travels to Arrakis.",
        "genres": [{"name": "Sci-Fi"}, {"name": "Adventure"}],
        "runtime": 155,
        "directors": [{"name": "Denis Villeneuve"}],
        "cast": [{"name": "Timothée Chalamet"}, {"name": "Zendaya"}],
        "reviews": [
            {"id": 7, "user": {"username": "alice"}, "score": 9, "content": "Epic."},
            {"text": "Too long"},
        ],
        "platforms": ["Prime Video"],
    }
}


# ---------------------------------------------------------------------------
# Fake clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock, usable as a ``timer``/``clock`` callable."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Upstream HTTP
# ---------------------------------------------------------------------------

Route = tuple[int, Any] | Callable[[httpx.Request], httpx.Response]


def make_transport(routes: dict[str, Route], requests: list[httpx.Request] | None = None) -> httpx.MockTransport:
    """Build a MockTransport answering by URL path.

    A route is either ``(status, json_body)``, ``(status, "<html>")`` or a
    callable returning an ``httpx.Response``.  Unknown paths answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"detail": "not found"})
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, str):
            return httpx.Response(status, text=body, headers={"content-type": "text/html"})
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})

    return httpx.MockTransport(handler)


def make_http_client(
    routes: dict[str, Route],
    cookies: dict[str, str] | None = None,
    requests: list[httpx.Request] | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL,
        cookies=cookies,
        transport=make_transport(routes, requests),
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(tmp_path: Path) -> SQLiteStorageProvider:
    provider = SQLiteStorageProvider(db_path=tmp_path / "relay_storage.db")
    provider.initialize()
    return provider
