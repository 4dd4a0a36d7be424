"""moctale-relay FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

# ─── COMPONENT GRAPH ──────────────────────────────────────────────────
#
#   httpx.AsyncClient (base_url + session cookie)
#        └─ MoctalePageAgent (one per injected tab)
#             └─ LocalBrowserRuntime (tabs, windows, context menus)
#                  ├─ AgentLocator ──┐
#                  │                 ├─ RequestRouter ─┐
#   MemoryCacheProvider ─────────────┘                 ├─ MessageDispatcher
#   SQLiteStorageProvider ─ PendingSearchStore ────────┤
#                                                      └─ ContextMenuService
#
# Everything is built once per app in _build_all() and stored on
# app.state; routes resolve it through Depends() helpers.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, Request

from moctale_relay import __version__
from moctale_relay.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from moctale_relay.api.routes import router as api_router
from moctale_relay.api.schemas import HealthResponse
from moctale_relay.config.loader import load_config
from moctale_relay.config.settings import Settings
from moctale_relay.models.browser import BrowserTab
from moctale_relay.providers.agent.auth_probes import default_auth_probes
from moctale_relay.providers.agent.moctale_agent import MoctalePageAgent
from moctale_relay.providers.cache.memory_cache import MemoryCacheProvider
from moctale_relay.providers.runtime.local_runtime import LocalBrowserRuntime
from moctale_relay.providers.storage.sqlite_storage import SQLiteStorageProvider
from moctale_relay.services.agent_locator import AgentLocator
from moctale_relay.services.context_menu import (
    CONTEXT_MENU_ID,
    CONTEXT_MENU_TITLE,
    POPUP_HEIGHT,
    POPUP_WIDTH,
    ContextMenuService,
)
from moctale_relay.services.message_dispatcher import MessageDispatcher
from moctale_relay.services.pending_search import PendingSearchStore
from moctale_relay.services.request_router import RequestRouter
from moctale_relay.utils.logging import configure_logging, get_logger

_DEFAULT_POPUP_URL = "moctale-relay://popup/popup.html"

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _build_http_client(app_settings: Settings) -> httpx.AsyncClient:
    """The shared client that plays the browser's network stack.

    Its cookie jar is the browser session: when ``MOCTALE_AUTH_TOKEN`` is
    set, every agent request goes out logged in.
    """
    cookies: dict[str, str] = {}
    if app_settings.moctale_auth_token:
        cookies[app_settings.moctale_auth_cookie] = app_settings.moctale_auth_token
    return httpx.AsyncClient(
        base_url=app_settings.moctale_base_url,
        cookies=cookies,
        timeout=app_settings.upstream_timeout_seconds,
        headers={"User-Agent": f"moctale-relay/{__version__}"},
    )


def _build_all(app_settings: Settings, config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    moctale_cfg = config.get("moctale", {})
    agent_cfg = config.get("agent", {})
    cache_cfg = config.get("cache", {})
    pending_cfg = config.get("pending_search", {})
    menu_cfg = config.get("context_menu", {})
    popup_cfg = config.get("popup", {})

    origins = moctale_cfg.get("origins") or app_settings.moctale_origins
    cookie_name = moctale_cfg.get("auth_cookie") or app_settings.moctale_auth_cookie

    # -- Shared resources --
    http_client = _build_http_client(app_settings)

    # -- Browser runtime (agents are built per tab at injection time) --
    def agent_factory(tab: BrowserTab) -> MoctalePageAgent:
        return MoctalePageAgent(
            http_client=http_client,
            page_url=tab.url,
            probes=default_auth_probes(cookie_name),
        )

    runtime = LocalBrowserRuntime(agent_factory=agent_factory, host_permissions=origins)

    # -- Cache --
    cache = MemoryCacheProvider(
        ttls=cache_cfg.get("ttl_seconds") or app_settings.get_cache_ttls(),
        max_size=cache_cfg.get("max_entries", app_settings.cache_max_entries),
    )

    # -- Durable storage + pending-search handoff --
    storage = SQLiteStorageProvider(
        db_path=pending_cfg.get("db_path", app_settings.storage_db_path)
    )
    pending_store = PendingSearchStore(
        storage,
        max_age_seconds=pending_cfg.get(
            "max_age_seconds", app_settings.pending_search_max_age_seconds
        ),
    )

    # -- Routing --
    locator = AgentLocator(
        runtime,
        origins=origins,
        timeout=agent_cfg.get("timeout_seconds", app_settings.agent_timeout_seconds),
        probe_timeout=agent_cfg.get(
            "probe_timeout_seconds", app_settings.agent_probe_timeout_seconds
        ),
        settle_delay=agent_cfg.get(
            "settle_delay_seconds", app_settings.agent_settle_delay_seconds
        ),
    )
    router = RequestRouter(
        cache=cache,
        locator=locator,
        runtime=runtime,
        base_url=moctale_cfg.get("base_url") or app_settings.moctale_base_url,
    )

    context_menu = ContextMenuService(
        runtime,
        pending_store,
        popup_url=popup_cfg.get("url", _DEFAULT_POPUP_URL),
        menu_id=menu_cfg.get("id", CONTEXT_MENU_ID),
        title=menu_cfg.get("title", CONTEXT_MENU_TITLE),
        width=popup_cfg.get("width", POPUP_WIDTH),
        height=popup_cfg.get("height", POPUP_HEIGHT),
    )
    dispatcher = MessageDispatcher(router, pending_store)

    return {
        "http_client": http_client,
        "runtime": runtime,
        "cache": cache,
        "storage": storage,
        "pending_store": pending_store,
        "locator": locator,
        "router": router,
        "context_menu": context_menu,
        "dispatcher": dispatcher,
    }


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    config: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Both arguments default to the environment-derived configuration; tests
    pass their own to point storage at a temporary directory.
    """
    app_settings = app_settings or Settings()
    config = config if config is not None else load_config(settings=app_settings)

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Initialise all providers and services on startup, clean up on shutdown."""
        components = _build_all(app_settings, config)
        for key, value in components.items():
            setattr(application.state, key, value)

        components["storage"].initialize()
        # Cache contents never outlive a coordinator run.
        await components["cache"].clear()
        await components["context_menu"].register()

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            base_url=app_settings.moctale_base_url,
            logged_in_session=bool(app_settings.moctale_auth_token),
        )

        yield

        await components["runtime"].aclose()
        http_client: httpx.AsyncClient = components["http_client"]
        await http_client.aclose()
        _logger.info("app_shutdown", message="HTTP client closed")

    application = FastAPI(
        title="moctale-relay",
        version=__version__,
        description=(
            "Background coordinator that relays movie search, details and "
            "session checks to an agent running inside a logged-in Moctale tab."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    @application.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request) -> HealthResponse:
        state = request.app.state
        return HealthResponse(
            status="ok",
            version=__version__,
            tabs=len(await state.runtime.query_tabs()),
            providers={
                "cache": state.cache.get_provider_name(),
                "storage": state.storage.get_provider_name(),
                "runtime": state.runtime.get_provider_name(),
            },
        )

    return application


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(host: str | None = None, port: int | None = None) -> None:
    """Run the coordinator under uvicorn."""
    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )
    uvicorn.run(
        create_app(app_settings),
        host=host or app_settings.app_host,
        port=port or app_settings.app_port,
        log_level=app_settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
