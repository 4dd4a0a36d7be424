"""Models describing the host browser runtime and durable handoff state."""

from __future__ import annotations

from pydantic import Field

from moctale_relay.models.media import WireModel


class BrowserTab(WireModel):
    """An open browser tab (the *TabHandle* of the coordinator).

    Ephemeral: never persisted, re-resolved on every routed request.
    """

    id: int
    url: str = ""
    window_id: int = 1
    active: bool = False


class BrowserWindow(WireModel):
    """A browser window; popup windows are opened by the context-menu trigger."""

    id: int
    type: str = "normal"
    focused: bool = False
    url: str | None = None
    width: int | None = None
    height: int | None = None


class ContextMenuItem(WireModel):
    """A registered context-menu entry (``%s`` is replaced by the selection)."""

    id: str
    title: str
    contexts: list[str] = Field(default_factory=lambda: ["selection"])


class PendingSearchRecord(WireModel):
    """The single durable pending-search slot.

    ``created_at`` is a POSIX timestamp in seconds.  A record older than the
    staleness window is treated as absent even though it is still stored.
    """

    query: str
    created_at: float
