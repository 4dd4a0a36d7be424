"""In-process model of the host browser's extension runtime.

Implements IBrowserRuntime without a real browser: tabs and windows are
plain records, "injecting" the agent attaches a :class:`MoctalePageAgent`
to a tab, and tab messaging is a direct coroutine call.  The agents share
one ``httpx.AsyncClient`` whose cookie jar plays the browser's session, so
the relay still only ever reuses an existing login.

Host permissions follow the extension model: the agent may only be
injected into pages under one of the configured origins.  Anything else
(``chrome://`` pages, other sites) fails with :class:`InjectionError`.

Navigating a tab unloads its agent, exactly like a real page load does;
the coordinator notices on its next ``PING`` and re-injects.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import structlog

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.interfaces.page_agent import IPageAgent
from moctale_relay.models.browser import BrowserTab, BrowserWindow, ContextMenuItem
from moctale_relay.utils.errors import AgentUnreachableError, InjectionError, TabNotFoundError
from moctale_relay.utils.logging import get_logger

AgentFactory = Callable[[BrowserTab], IPageAgent]

_PROVIDER_NAME = "local_runtime"


class LocalBrowserRuntime(IBrowserRuntime):
    """Browser runtime kept entirely in memory.

    Parameters
    ----------
    agent_factory:
        Builds the agent for a tab at injection time.
    host_permissions:
        URL prefixes the agent may be injected into.
    """

    def __init__(self, agent_factory: AgentFactory, host_permissions: list[str]) -> None:
        self._agent_factory = agent_factory
        self._host_permissions = list(host_permissions)
        self._tabs: dict[int, BrowserTab] = {}
        self._windows: dict[int, BrowserWindow] = {}
        self._agents: dict[int, IPageAgent] = {}
        self._context_menus: dict[str, ContextMenuItem] = {}
        self._tab_ids = itertools.count(1)
        self._window_ids = itertools.count(1)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Tabs and windows
    # ------------------------------------------------------------------

    async def query_tabs(self) -> list[BrowserTab]:
        return list(self._tabs.values())

    async def create_tab(self, url: str, active: bool = True) -> BrowserTab:
        window_id = self._current_window_id()
        tab = BrowserTab(id=next(self._tab_ids), url=url, window_id=window_id, active=False)
        self._tabs[tab.id] = tab
        if active:
            tab = await self.activate_tab(tab.id)
        self._logger.info("tab_created", tab_id=tab.id, url=url)
        return tab

    async def activate_tab(self, tab_id: int) -> BrowserTab:
        target = self._get_tab(tab_id)
        for tab in list(self._tabs.values()):
            if tab.window_id == target.window_id:
                self._tabs[tab.id] = tab.model_copy(update={"active": tab.id == tab_id})
        return self._tabs[tab_id]

    async def focus_window(self, window_id: int) -> None:
        if window_id not in self._windows:
            raise TabNotFoundError(
                message=f"Window {window_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        for window in list(self._windows.values()):
            self._windows[window.id] = window.model_copy(
                update={"focused": window.id == window_id}
            )

    async def create_window(
        self,
        url: str,
        window_type: str = "popup",
        width: int | None = None,
        height: int | None = None,
        focused: bool = True,
    ) -> BrowserWindow:
        window = BrowserWindow(
            id=next(self._window_ids),
            type=window_type,
            url=url,
            width=width,
            height=height,
        )
        self._windows[window.id] = window
        tab = BrowserTab(id=next(self._tab_ids), url=url, window_id=window.id, active=True)
        self._tabs[tab.id] = tab
        if focused:
            await self.focus_window(window.id)
        self._logger.info("window_created", window_id=window.id, type=window_type, url=url)
        return self._windows[window.id]

    async def navigate_tab(self, tab_id: int, url: str) -> BrowserTab:
        """Load *url* in *tab_id*; the page agent (if any) is unloaded."""
        tab = self._get_tab(tab_id).model_copy(update={"url": url})
        self._tabs[tab_id] = tab
        await self._unload_agent(tab_id)
        return tab

    async def close_tab(self, tab_id: int) -> None:
        """Close *tab_id* and unload its agent."""
        self._get_tab(tab_id)
        del self._tabs[tab_id]
        await self._unload_agent(tab_id)

    async def get_windows(self) -> list[BrowserWindow]:
        return list(self._windows.values())

    # ------------------------------------------------------------------
    # Agent channel
    # ------------------------------------------------------------------

    async def inject_agent(self, tab_id: int) -> None:
        tab = self._get_tab(tab_id)
        if not any(tab.url.startswith(prefix) for prefix in self._host_permissions):
            raise InjectionError(
                message=f"Cannot access contents of url {tab.url!r}",
                provider_name=_PROVIDER_NAME,
            )
        # Re-injection into a live page keeps the running agent.
        if tab_id in self._agents:
            return
        self._agents[tab_id] = self._agent_factory(tab)
        self._logger.info("agent_injected", tab_id=tab_id, url=tab.url)

    async def send_message(self, tab_id: int, message: dict[str, Any]) -> dict[str, Any] | None:
        self._get_tab(tab_id)
        agent = self._agents.get(tab_id)
        if agent is None:
            raise AgentUnreachableError(
                message=f"Could not establish connection in tab {tab_id}. Receiving end does not exist.",
                provider_name=_PROVIDER_NAME,
            )
        return await agent.handle_message(message)

    def has_agent(self, tab_id: int) -> bool:
        return tab_id in self._agents

    # ------------------------------------------------------------------
    # Context menus
    # ------------------------------------------------------------------

    async def remove_all_context_menus(self) -> None:
        self._context_menus.clear()

    async def create_context_menu(self, item: ContextMenuItem) -> None:
        self._context_menus[item.id] = item

    def get_context_menus(self) -> list[ContextMenuItem]:
        return list(self._context_menus.values())

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    async def aclose(self) -> None:
        """Unload every agent (coordinator shutdown)."""
        for tab_id in list(self._agents):
            await self._unload_agent(tab_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_tab(self, tab_id: int) -> BrowserTab:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise TabNotFoundError(
                message=f"Tab {tab_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        return tab

    def _current_window_id(self) -> int:
        normal = [w for w in self._windows.values() if w.type == "normal"]
        focused = [w for w in normal if w.focused]
        if focused:
            return focused[0].id
        if normal:
            return normal[0].id
        window = BrowserWindow(id=next(self._window_ids), type="normal", focused=True)
        self._windows[window.id] = window
        return window.id

    async def _unload_agent(self, tab_id: int) -> None:
        agent = self._agents.pop(tab_id, None)
        if agent is not None:
            await agent.aclose()
            self._logger.debug("agent_unloaded", tab_id=tab_id)
