"""FastAPI routes for the moctale-relay coordinator.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                            Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/messages                    POST    UI message → envelope (always 200)
# /api/v1/context-menu/clicked        POST    Selection click → pending search + popup
# /api/v1/tabs                        GET     List tabs of the local runtime
# /api/v1/tabs                        POST    Open a URL in a new tab
# /api/v1/tabs/{tab_id}/navigate      POST    Point a tab at a new URL
# /api/v1/tabs/{tab_id}               DELETE  Close a tab
#
# /health lives in main.py, outside the versioned prefix.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from moctale_relay.api.schemas import (
    ContextMenuClickRequest,
    ContextMenuClickResponse,
    ErrorResponse,
    MessageRequest,
    NavigateTabRequest,
    OpenTabRequest,
    TabListResponse,
)
from moctale_relay.models.browser import BrowserTab
from moctale_relay.providers.runtime.local_runtime import LocalBrowserRuntime
from moctale_relay.services.context_menu import ContextMenuService
from moctale_relay.services.message_dispatcher import MessageDispatcher
from moctale_relay.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers - resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_dispatcher(request: Request) -> MessageDispatcher:
    return request.app.state.dispatcher


def _get_context_menu(request: Request) -> ContextMenuService:
    return request.app.state.context_menu


def _get_runtime(request: Request) -> LocalBrowserRuntime:
    return request.app.state.runtime


DispatcherDep = Annotated[MessageDispatcher, Depends(_get_dispatcher)]
ContextMenuDep = Annotated[ContextMenuService, Depends(_get_context_menu)]
RuntimeDep = Annotated[LocalBrowserRuntime, Depends(_get_runtime)]


# ---------------------------------------------------------------------------
# UI messages
# ---------------------------------------------------------------------------


@router.post("/messages", summary="Handle one UI message")
async def handle_message(body: MessageRequest, dispatcher: DispatcherDep) -> dict[str, Any]:
    """Dispatch a UI message and return its envelope.

    Failures are envelopes too, so the status code is 200 either way; the
    caller inspects ``success``.
    """
    envelope = await dispatcher.dispatch(body.model_dump())
    return envelope.to_wire()


# ---------------------------------------------------------------------------
# Context menu
# ---------------------------------------------------------------------------


@router.post(
    "/context-menu/clicked",
    response_model=ContextMenuClickResponse,
    summary="Handle a context-menu click",
)
async def context_menu_clicked(
    body: ContextMenuClickRequest,
    context_menu: ContextMenuDep,
) -> ContextMenuClickResponse:
    handled = await context_menu.handle_click(body.menu_item_id, body.selection_text)
    return ContextMenuClickResponse(handled=handled)


# ---------------------------------------------------------------------------
# Local runtime control
# ---------------------------------------------------------------------------


@router.get("/tabs", response_model=TabListResponse, summary="List open tabs")
async def list_tabs(runtime: RuntimeDep) -> TabListResponse:
    return TabListResponse(tabs=await runtime.query_tabs())


@router.post("/tabs", response_model=BrowserTab, summary="Open a URL in a new tab")
async def open_tab(body: OpenTabRequest, runtime: RuntimeDep) -> BrowserTab:
    tab = await runtime.create_tab(body.url, active=body.active)
    _logger.info("tab_opened", tab_id=tab.id, url=tab.url)
    return tab


@router.post(
    "/tabs/{tab_id}/navigate",
    response_model=BrowserTab,
    responses={404: {"model": ErrorResponse}},
    summary="Navigate a tab",
)
async def navigate_tab(tab_id: int, body: NavigateTabRequest, runtime: RuntimeDep) -> BrowserTab:
    """Point *tab_id* at a new URL.  Its agent is unloaded, like a page load."""
    return await runtime.navigate_tab(tab_id, body.url)


@router.delete(
    "/tabs/{tab_id}",
    status_code=204,
    responses={404: {"model": ErrorResponse}},
    summary="Close a tab",
)
async def close_tab(tab_id: int, runtime: RuntimeDep) -> None:
    await runtime.close_tab(tab_id)
