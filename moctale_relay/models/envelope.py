"""Response envelopes — the only shape that crosses a boundary.

Every reply from the page agent to the coordinator, and from the coordinator
to the UI, is exactly one of:

    {"success": true,  ...payload, "cached": bool}
    {"success": false, "error": <ErrorKind>, "message": str}

# ─── ENVELOPE FLOW ─────────────────────────────────────────────────────
#
#   agent dict ──parse_*_reply()──→ typed envelope ──cache──→ router
#   router ──to_wire()──→ JSON body ──→ UI adapter ──parse_envelope()──→ typed
#
# Success payloads are category-specific (session status, search results,
# item details, acknowledgement, pending search).  Failures are uniform.
# Cached values are never mutated: a cache hit returns
# ``envelope.model_copy(update={"cached": True})``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import Field

from moctale_relay.models.media import MediaItem, MediaItemDetails, Pagination, WireModel


class ErrorKind(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Error kinds carried in the ``error`` field of a failure envelope.

    Grouped by where they originate:
        validation  — INVALID_QUERY, INVALID_ID
        locator     — NO_TARGET_TAB, INJECTION_FAILED
        transport   — COMMUNICATION_ERROR, NETWORK_ERROR, NO_RESPONSE
        upstream    — UNAUTHORIZED, API_ERROR, NOT_FOUND, FETCH_FAILED
        agent       — INVALID_SLUG, AGENT_ERROR, DOM_SCRAPING_NOT_IMPLEMENTED
        dispatcher  — UNKNOWN_MESSAGE_TYPE, INTERNAL_ERROR
        handoff     — NO_PENDING_SEARCH
    """

    INVALID_QUERY = "INVALID_QUERY"
    INVALID_ID = "INVALID_ID"
    NO_TARGET_TAB = "NO_MOCTALE_TAB"
    INJECTION_FAILED = "INJECTION_FAILED"
    COMMUNICATION_ERROR = "COMMUNICATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    NO_RESPONSE = "NO_RESPONSE"
    UNAUTHORIZED = "UNAUTHORIZED"
    API_ERROR = "API_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FETCH_FAILED = "FETCH_FAILED"
    INVALID_SLUG = "INVALID_SLUG"
    AGENT_ERROR = "AGENT_ERROR"
    DOM_SCRAPING_NOT_IMPLEMENTED = "DOM_SCRAPING_NOT_IMPLEMENTED"
    UNKNOWN_MESSAGE_TYPE = "UNKNOWN_MESSAGE_TYPE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NO_PENDING_SEARCH = "NO_PENDING_SEARCH"


# ---------------------------------------------------------------------------
# Failure
# ---------------------------------------------------------------------------

class Failure(WireModel):
    """A failed request.  Never cached."""

    success: Literal[False] = False
    # ErrorKind first so known kinds round-trip as enum members; unknown
    # kinds reported by a newer agent are kept as plain strings.
    error: Union[ErrorKind, str] = Field(union_mode="left_to_right")
    message: str = ""


def failure(kind: ErrorKind, message: str) -> Failure:
    """Shorthand used at every place a failure envelope is produced."""
    return Failure(error=kind, message=message)


# ---------------------------------------------------------------------------
# Success payloads
# ---------------------------------------------------------------------------

class Success(WireModel):
    """Common base of every success envelope."""

    success: Literal[True] = True
    cached: bool = False


class Acknowledgement(Success):
    """Fire-and-forget operations (open login, open site, clear pending)."""


class SessionStatus(Success):
    """Whether the browser session is logged in to Moctale."""

    is_logged_in: bool
    username: str | None = None
    method: str | None = None
    indicator: str | None = None
    message: str | None = None


class SearchResults(Success):
    """One page of normalized search results."""

    results: list[MediaItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    method: str | None = None
    endpoint: str | None = None


class MediaDetails(Success):
    """A single catalog entry with extended fields."""

    data: MediaItemDetails
    method: str | None = None


class PendingSearch(Success):
    """A fresh query handed over by the context-menu trigger."""

    query: str


Envelope = Union[
    Failure,
    SessionStatus,
    SearchResults,
    MediaDetails,
    PendingSearch,
    Acknowledgement,
]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_failure(reply: dict[str, Any]) -> Failure | None:
    """Return a :class:`Failure` when *reply* is a failure envelope, else ``None``."""
    if reply.get("success") is True:
        return None
    return Failure(
        error=reply.get("error") or ErrorKind.INTERNAL_ERROR,
        message=reply.get("message") or "",
    )


def parse_envelope(body: dict[str, Any]) -> Envelope:
    """Best-effort typed view of a wire envelope, used by the UI adapter.

    The success payload kind is inferred from its distinguishing field.
    """
    failed = parse_failure(body)
    if failed is not None:
        return failed
    if "isLoggedIn" in body or "is_logged_in" in body:
        return SessionStatus.model_validate(body)
    if "results" in body:
        return SearchResults.model_validate(body)
    if "data" in body:
        return MediaDetails.model_validate(body)
    if "query" in body:
        return PendingSearch.model_validate(body)
    return Acknowledgement.model_validate(body)
