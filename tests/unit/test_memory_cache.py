"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

import pytest

from moctale_relay.providers.cache.memory_cache import DEFAULT_CATEGORY_TTLS, MemoryCacheProvider
from tests.conftest import FakeClock


# ======================================================================
# Basic operations
# ======================================================================


class TestMemoryCacheProvider:
    @pytest.fixture()
    def cache(self, clock: FakeClock) -> MemoryCacheProvider:
        return MemoryCacheProvider(timer=clock)

    def test_make_key_joins_category_and_args(self) -> None:
        assert MemoryCacheProvider.make_key("searchResults", "dune") == "searchResults:dune"
        assert MemoryCacheProvider.make_key("searchResults", "dune", 2) == "searchResults:dune:2"

    def test_get_provider_name(self, cache: MemoryCacheProvider) -> None:
        assert cache.get_provider_name() == "memory_cache"

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, cache: MemoryCacheProvider) -> None:
        assert await cache.get("searchResults", "nothing") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: MemoryCacheProvider) -> None:
        await cache.set("searchResults", {"results": []}, "dune")
        assert await cache.get("searchResults", "dune") == {"results": []}

    @pytest.mark.asyncio
    async def test_set_overwrites_existing(self, cache: MemoryCacheProvider) -> None:
        await cache.set("movieDetails", "old", "dune-2021")
        await cache.set("movieDetails", "new", "dune-2021")
        assert await cache.get("movieDetails", "dune-2021") == "new"

    @pytest.mark.asyncio
    async def test_same_args_in_different_categories_do_not_collide(
        self, cache: MemoryCacheProvider
    ) -> None:
        await cache.set("searchResults", "a", "x")
        await cache.set("movieDetails", "b", "x")
        assert await cache.get("searchResults", "x") == "a"
        assert await cache.get("movieDetails", "x") == "b"


# ======================================================================
# Expiry
# ======================================================================


class TestMemoryCacheExpiry:
    @pytest.fixture()
    def cache(self, clock: FakeClock) -> MemoryCacheProvider:
        return MemoryCacheProvider(timer=clock)

    def test_default_ttls_per_category(self, cache: MemoryCacheProvider) -> None:
        assert cache.ttl_for("sessionState") == 60
        assert cache.ttl_for("searchResults") == 300
        assert cache.ttl_for("movieDetails") == 900

    def test_unknown_category_uses_search_ttl(self, cache: MemoryCacheProvider) -> None:
        assert cache.ttl_for("somethingElse") == DEFAULT_CATEGORY_TTLS["searchResults"]

    @pytest.mark.asyncio
    async def test_value_alive_before_ttl(self, cache: MemoryCacheProvider, clock: FakeClock) -> None:
        await cache.set("sessionState", "ok", "status")
        clock.advance(59)
        assert await cache.get("sessionState", "status") == "ok"

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl_and_stays_absent(
        self, cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        await cache.set("sessionState", "ok", "status")
        clock.advance(61)
        assert await cache.get("sessionState", "status") is None
        # Purged on the first read; later reads stay absent.
        assert cache.entry_count() == 0
        assert await cache.get("sessionState", "status") is None

    @pytest.mark.asyncio
    async def test_value_alive_at_exact_expiry_instant(
        self, cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        await cache.set("sessionState", "ok", "status")
        clock.advance(60)
        assert await cache.get("sessionState", "status") == "ok"
        clock.advance(0.001)
        assert await cache.get("sessionState", "status") is None

    @pytest.mark.asyncio
    async def test_categories_expire_independently(
        self, cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        await cache.set("sessionState", "session", "status")
        await cache.set("movieDetails", "details", "dune-2021")
        clock.advance(120)
        assert await cache.get("sessionState", "status") is None
        assert await cache.get("movieDetails", "dune-2021") == "details"

    @pytest.mark.asyncio
    async def test_overwrite_restarts_expiry(self, cache: MemoryCacheProvider, clock: FakeClock) -> None:
        await cache.set("sessionState", "first", "status")
        clock.advance(50)
        await cache.set("sessionState", "second", "status")
        clock.advance(50)
        assert await cache.get("sessionState", "status") == "second"

    @pytest.mark.asyncio
    async def test_custom_ttls(self, clock: FakeClock) -> None:
        cache = MemoryCacheProvider(ttls={"searchResults": 5}, timer=clock)
        await cache.set("searchResults", "r", "q")
        clock.advance(6)
        assert await cache.get("searchResults", "q") is None


# ======================================================================
# Clearing
# ======================================================================


class TestMemoryCacheClear:
    @pytest.fixture()
    def cache(self, clock: FakeClock) -> MemoryCacheProvider:
        return MemoryCacheProvider(timer=clock)

    @pytest.mark.asyncio
    async def test_clear_drops_everything(self, cache: MemoryCacheProvider) -> None:
        await cache.set("searchResults", "r", "q")
        await cache.set("sessionState", "s", "status")
        await cache.clear()
        assert await cache.get("searchResults", "q") is None
        assert await cache.get("sessionState", "status") is None
        assert cache.entry_count() == 0

    @pytest.mark.asyncio
    async def test_clear_category_keeps_other_categories(self, cache: MemoryCacheProvider) -> None:
        await cache.set("searchResults", "r", "q")
        await cache.set("movieDetails", "d", "dune-2021")
        await cache.clear_category("searchResults")
        assert await cache.get("searchResults", "q") is None
        assert await cache.get("movieDetails", "dune-2021") == "d"

    @pytest.mark.asyncio
    async def test_clear_unknown_category_is_noop(self, cache: MemoryCacheProvider) -> None:
        await cache.clear_category("neverUsed")  # should not raise
