"""Abstract base class for the host browser's extension runtime.

The coordinator never enumerates tabs or injects code by itself; it calls
this capability interface.  A concrete runtime maps it onto a real browser
or, for local use and tests, onto an in-process model of one
(:class:`~moctale_relay.providers.runtime.local_runtime.LocalBrowserRuntime`).

Error contract:
    - ``send_message`` raises :class:`AgentUnreachableError` when no agent
      answers in the tab (never injected, or the tab navigated away).
    - ``inject_agent`` raises :class:`InjectionError` on restricted pages.
    - Tab-addressed calls raise :class:`TabNotFoundError` for unknown ids.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from moctale_relay.models.browser import BrowserTab, BrowserWindow, ContextMenuItem


class IBrowserRuntime(ABC):
    """Contract for tab enumeration, injection, messaging and context menus."""

    # -- Tabs and windows -------------------------------------------------

    @abstractmethod
    async def query_tabs(self) -> list[BrowserTab]:
        """Return every open tab in host enumeration order."""

    @abstractmethod
    async def create_tab(self, url: str, active: bool = True) -> BrowserTab:
        """Open *url* in a new tab."""

    @abstractmethod
    async def activate_tab(self, tab_id: int) -> BrowserTab:
        """Make *tab_id* the active tab of its window."""

    @abstractmethod
    async def focus_window(self, window_id: int) -> None:
        """Bring *window_id* to the foreground."""

    @abstractmethod
    async def create_window(
        self,
        url: str,
        window_type: str = "popup",
        width: int | None = None,
        height: int | None = None,
        focused: bool = True,
    ) -> BrowserWindow:
        """Open a new window showing *url*."""

    # -- Agent channel ----------------------------------------------------

    @abstractmethod
    async def inject_agent(self, tab_id: int) -> None:
        """Load the page agent into *tab_id*.  Re-injection is harmless."""

    @abstractmethod
    async def send_message(self, tab_id: int, message: dict[str, Any]) -> dict[str, Any] | None:
        """Deliver *message* to the agent in *tab_id* and return its reply."""

    # -- Context menus ----------------------------------------------------

    @abstractmethod
    async def remove_all_context_menus(self) -> None:
        """Drop every context-menu entry registered by the relay."""

    @abstractmethod
    async def create_context_menu(self, item: ContextMenuItem) -> None:
        """Register a context-menu entry."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
