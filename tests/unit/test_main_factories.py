"""Unit tests for factory functions in moctale_relay/main.py.

Tests the shared HTTP client, the _build_all component graph and the
create_app factory, with storage pointed at a temporary directory so no
real network calls or developer files are touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI

from moctale_relay.config.settings import Settings
from moctale_relay.main import _build_all, _build_http_client, create_app
from moctale_relay.models.browser import BrowserTab
from moctale_relay.providers.cache.memory_cache import MemoryCacheProvider
from moctale_relay.services.message_dispatcher import MessageDispatcher


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(tmp_path: Path, **overrides) -> Settings:
    defaults = {
        "moctale_auth_token": "",
        "storage_db_path": str(tmp_path / "relay_storage.db"),
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ======================================================================
# _build_http_client
# ======================================================================


class TestBuildHttpClient:
    @pytest.mark.asyncio
    async def test_logged_out_client_has_no_cookie(self, tmp_path: Path) -> None:
        client = _build_http_client(_settings(tmp_path))
        assert str(client.base_url) == "https://www.moctale.in"
        assert client.cookies.get("auth_token") is None
        assert client.headers["User-Agent"].startswith("moctale-relay/")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_auth_token_becomes_session_cookie(self, tmp_path: Path) -> None:
        client = _build_http_client(
            _settings(tmp_path, moctale_auth_token="secret", moctale_auth_cookie="sid")
        )
        assert client.cookies.get("sid") == "secret"
        await client.aclose()


# ======================================================================
# _build_all
# ======================================================================


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_component_graph(self, tmp_path: Path) -> None:
        components = _build_all(_settings(tmp_path), {})
        assert set(components) == {
            "http_client",
            "runtime",
            "cache",
            "storage",
            "pending_store",
            "locator",
            "router",
            "context_menu",
            "dispatcher",
        }
        assert isinstance(components["cache"], MemoryCacheProvider)
        assert isinstance(components["dispatcher"], MessageDispatcher)
        assert components["context_menu"].menu_id == "moctale-search-selection"
        await components["http_client"].aclose()

    @pytest.mark.asyncio
    async def test_config_values_take_effect(self, tmp_path: Path) -> None:
        config = {
            "cache": {"ttl_seconds": {"sessionState": 5, "searchResults": 6, "movieDetails": 7}},
            "context_menu": {"id": "custom-menu"},
        }
        components = _build_all(_settings(tmp_path), config)
        assert components["cache"].ttl_for("sessionState") == 5
        assert components["context_menu"].menu_id == "custom-menu"
        await components["http_client"].aclose()

    @pytest.mark.asyncio
    async def test_injection_builds_a_page_agent(self, tmp_path: Path) -> None:
        components = _build_all(_settings(tmp_path), {})
        runtime = components["runtime"]
        tab: BrowserTab = await runtime.create_tab("https://www.moctale.in/explore")
        await runtime.inject_agent(tab.id)
        assert runtime.has_agent(tab.id)
        assert await runtime.send_message(tab.id, {"type": "PING"}) == {"pong": True}
        await runtime.aclose()
        await components["http_client"].aclose()


# ======================================================================
# create_app
# ======================================================================


class TestCreateApp:
    def test_returns_fastapi_app_with_routes(self, tmp_path: Path) -> None:
        app = create_app(_settings(tmp_path), config={})
        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/api/v1/messages" in paths
        assert "/api/v1/context-menu/clicked" in paths
        assert "/api/v1/tabs/{tab_id}" in paths
