"""Pydantic request/response schemas for the moctale-relay HTTP surface.

The message endpoint does not declare a response model: its body is the
envelope itself (``Envelope.to_wire()``), whose payload shape depends on
the request kind.  Everything else is described here.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# Convention: request schemas end with "Request", response schemas end
# with "Response".  MessageRequest is open (extra="allow"):
# the payload fields of a UI message (``query``, ``movieId``) travel next
# to ``type`` at the top level, exactly as the UI sends them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from moctale_relay.models.browser import BrowserTab


class MessageRequest(BaseModel):
    """A UI message: ``{"type": ..., ...payload}``."""

    model_config = ConfigDict(extra="allow")

    # Unknown or missing kinds are answered by the dispatcher, not rejected here.
    type: str | None = Field(default=None, description="Request kind, e.g. SEARCH_MOVIES")


class ContextMenuClickRequest(BaseModel):
    """A click on a registered context-menu entry."""

    model_config = ConfigDict(populate_by_name=True)

    menu_item_id: str = Field(alias="menuItemId")
    selection_text: str | None = Field(default=None, alias="selectionText")


class ContextMenuClickResponse(BaseModel):
    """Whether the click produced a pending search and a popup window."""

    handled: bool


class OpenTabRequest(BaseModel):
    """Open *url* in a new tab of the local runtime."""

    url: str = Field(min_length=1)
    active: bool = True


class NavigateTabRequest(BaseModel):
    """Point an existing tab at a new URL (unloads its agent)."""

    url: str = Field(min_length=1)


class TabListResponse(BaseModel):
    """Every open tab, in enumeration order."""

    tabs: list[BrowserTab] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    tabs: int
    providers: dict[str, str]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
