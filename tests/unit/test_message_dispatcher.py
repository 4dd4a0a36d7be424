"""Unit tests for MessageDispatcher and ContextMenuService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.models.envelope import (
    Acknowledgement,
    ErrorKind,
    Failure,
    PendingSearch,
    SessionStatus,
)
from moctale_relay.services.context_menu import CONTEXT_MENU_ID, ContextMenuService
from moctale_relay.services.message_dispatcher import MessageDispatcher
from moctale_relay.services.pending_search import PendingSearchStore
from moctale_relay.services.request_router import RequestRouter


@pytest.fixture()
def router() -> MagicMock:
    router = MagicMock(spec=RequestRouter)
    router.check_session = AsyncMock(return_value=SessionStatus(is_logged_in=True))
    router.search_movies = AsyncMock(return_value=Acknowledgement())
    router.get_movie_details = AsyncMock(return_value=Acknowledgement())
    router.open_login = AsyncMock(return_value=Acknowledgement())
    router.open_site = AsyncMock(return_value=Acknowledgement())
    return router


@pytest.fixture()
def pending() -> MagicMock:
    pending = MagicMock(spec=PendingSearchStore)
    pending.read_if_fresh = AsyncMock(return_value=None)
    pending.write = AsyncMock()
    pending.clear = AsyncMock()
    return pending


@pytest.fixture()
def dispatcher(router: MagicMock, pending: MagicMock) -> MessageDispatcher:
    return MessageDispatcher(router, pending)


# ======================================================================
# MessageDispatcher
# ======================================================================


class TestMessageDispatcher:
    @pytest.mark.asyncio
    async def test_check_session(self, dispatcher: MessageDispatcher, router: MagicMock) -> None:
        result = await dispatcher.dispatch({"type": "CHECK_SESSION"})
        assert isinstance(result, SessionStatus)
        router.check_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_passes_query(self, dispatcher: MessageDispatcher, router: MagicMock) -> None:
        await dispatcher.dispatch({"type": "SEARCH_MOVIES", "query": "Dune"})
        router.search_movies.assert_awaited_once_with("Dune")

    @pytest.mark.asyncio
    async def test_details_passes_movie_id(self, dispatcher: MessageDispatcher, router: MagicMock) -> None:
        await dispatcher.dispatch({"type": "GET_MOVIE_DETAILS", "movieId": "dune-2021"})
        router.get_movie_details.assert_awaited_once_with("dune-2021")

    @pytest.mark.asyncio
    async def test_open_operations(self, dispatcher: MessageDispatcher, router: MagicMock) -> None:
        await dispatcher.dispatch({"type": "OPEN_LOGIN"})
        await dispatcher.dispatch({"type": "OPEN_MOCTALE"})
        router.open_login.assert_awaited_once()
        router.open_site.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_type(self, dispatcher: MessageDispatcher) -> None:
        result = await dispatcher.dispatch({"type": "DANCE"})
        assert isinstance(result, Failure)
        assert result.error is ErrorKind.UNKNOWN_MESSAGE_TYPE
        assert result.message == "Unknown message type: DANCE"

    @pytest.mark.asyncio
    async def test_missing_type(self, dispatcher: MessageDispatcher) -> None:
        result = await dispatcher.dispatch({})
        assert isinstance(result, Failure)
        assert result.error is ErrorKind.UNKNOWN_MESSAGE_TYPE

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_internal_error(
        self, dispatcher: MessageDispatcher, router: MagicMock
    ) -> None:
        router.check_session.side_effect = RuntimeError("cache exploded")
        result = await dispatcher.dispatch({"type": "CHECK_SESSION"})
        assert isinstance(result, Failure)
        assert result.error is ErrorKind.INTERNAL_ERROR
        assert result.message == "cache exploded"

    @pytest.mark.asyncio
    async def test_pending_search_present(self, dispatcher: MessageDispatcher, pending: MagicMock) -> None:
        pending.read_if_fresh.return_value = "Oppenheimer"
        result = await dispatcher.dispatch({"type": "GET_PENDING_SEARCH"})
        assert isinstance(result, PendingSearch)
        assert result.query == "Oppenheimer"

    @pytest.mark.asyncio
    async def test_pending_search_absent(self, dispatcher: MessageDispatcher) -> None:
        result = await dispatcher.dispatch({"type": "GET_PENDING_SEARCH"})
        assert isinstance(result, Failure)
        assert result.error is ErrorKind.NO_PENDING_SEARCH

    @pytest.mark.asyncio
    async def test_clear_pending_search(self, dispatcher: MessageDispatcher, pending: MagicMock) -> None:
        result = await dispatcher.dispatch({"type": "CLEAR_PENDING_SEARCH"})
        assert isinstance(result, Acknowledgement)
        pending.clear.assert_awaited_once()


# ======================================================================
# ContextMenuService
# ======================================================================


class TestContextMenuService:
    @pytest.fixture()
    def runtime(self) -> MagicMock:
        runtime = MagicMock(spec=IBrowserRuntime)
        runtime.remove_all_context_menus = AsyncMock()
        runtime.create_context_menu = AsyncMock()
        runtime.create_window = AsyncMock()
        return runtime

    @pytest.fixture()
    def service(self, runtime: MagicMock, pending: MagicMock) -> ContextMenuService:
        return ContextMenuService(runtime, pending, popup_url="moctale-relay://popup/popup.html")

    @pytest.mark.asyncio
    async def test_register_replaces_existing_entries(
        self, service: ContextMenuService, runtime: MagicMock
    ) -> None:
        await service.register()
        runtime.remove_all_context_menus.assert_awaited_once()
        item = runtime.create_context_menu.await_args.args[0]
        assert item.id == "moctale-search-selection"
        assert item.title == 'Search "%s" in Moctale'
        assert item.contexts == ["selection"]

    @pytest.mark.asyncio
    async def test_click_writes_trimmed_selection_and_opens_popup(
        self, service: ContextMenuService, runtime: MagicMock, pending: MagicMock
    ) -> None:
        handled = await service.handle_click(CONTEXT_MENU_ID, "  Oppenheimer \n")
        assert handled is True
        pending.write.assert_awaited_once_with("Oppenheimer")
        runtime.create_window.assert_awaited_once_with(
            "moctale-relay://popup/popup.html",
            window_type="popup",
            width=400,
            height=520,
            focused=True,
        )

    @pytest.mark.parametrize("selection", ["", "   ", None])
    @pytest.mark.asyncio
    async def test_blank_selection_is_ignored(
        self, service: ContextMenuService, runtime: MagicMock, pending: MagicMock, selection: str | None
    ) -> None:
        assert await service.handle_click(CONTEXT_MENU_ID, selection) is False
        pending.write.assert_not_awaited()
        runtime.create_window.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_menu_entries_are_ignored(
        self, service: ContextMenuService, pending: MagicMock
    ) -> None:
        assert await service.handle_click("something-else", "dune") is False
        pending.write.assert_not_awaited()
