"""Context-menu trigger — "Search "<selection>" in Moctale".

Registers one selection-context entry and turns clicks on it into a
pending-search handoff plus a popup window showing the UI.  The popup
reads the handoff on launch via ``GET_PENDING_SEARCH``.
"""

from __future__ import annotations

import structlog

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.models.browser import ContextMenuItem
from moctale_relay.services.pending_search import PendingSearchStore
from moctale_relay.utils.logging import get_logger

CONTEXT_MENU_ID = "moctale-search-selection"
CONTEXT_MENU_TITLE = 'Search "%s" in Moctale'
POPUP_WIDTH = 400
POPUP_HEIGHT = 520


class ContextMenuService:
    """Owns the relay's context-menu entry and its click handling."""

    def __init__(
        self,
        runtime: IBrowserRuntime,
        pending_store: PendingSearchStore,
        popup_url: str,
        menu_id: str = CONTEXT_MENU_ID,
        title: str = CONTEXT_MENU_TITLE,
        width: int = POPUP_WIDTH,
        height: int = POPUP_HEIGHT,
    ) -> None:
        self._runtime = runtime
        self._pending = pending_store
        self._popup_url = popup_url
        self._menu_id = menu_id
        self._title = title
        self._width = width
        self._height = height
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def menu_id(self) -> str:
        return self._menu_id

    async def register(self) -> None:
        """(Re)create the menu entry; safe to call on every startup."""
        await self._runtime.remove_all_context_menus()
        await self._runtime.create_context_menu(
            ContextMenuItem(id=self._menu_id, title=self._title, contexts=["selection"])
        )
        self._logger.info("context_menu_registered", menu_id=self._menu_id)

    async def handle_click(self, menu_item_id: str, selection_text: str | None) -> bool:
        """Handle a click on a context-menu entry.

        Returns ``True`` when a handoff was written and the popup opened.
        Clicks on other entries and blank selections are ignored.
        """
        if menu_item_id != self._menu_id:
            return False
        query = (selection_text or "").strip()
        if not query:
            self._logger.debug("context_menu_blank_selection")
            return False

        await self._pending.write(query)
        await self._runtime.create_window(
            self._popup_url,
            window_type="popup",
            width=self._width,
            height=self._height,
            focused=True,
        )
        self._logger.info("context_menu_search_handed_off", length=len(query))
        return True
