"""moctale-relay API layer — routes, schemas, and middleware."""

from moctale_relay.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from moctale_relay.api.routes import router
from moctale_relay.api.schemas import (
    ContextMenuClickRequest,
    ContextMenuClickResponse,
    ErrorResponse,
    HealthResponse,
    MessageRequest,
    NavigateTabRequest,
    OpenTabRequest,
    TabListResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ContextMenuClickRequest",
    "ContextMenuClickResponse",
    "ErrorResponse",
    "HealthResponse",
    "MessageRequest",
    "NavigateTabRequest",
    "OpenTabRequest",
    "TabListResponse",
]
