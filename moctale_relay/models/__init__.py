"""moctale-relay domain models — re-exports all public model classes.

The models are organized across three submodules by concern:
    - browser.py   — tabs, windows, context menus, the pending-search record
    - envelope.py  — success/failure response envelopes and error kinds
    - media.py     — normalized catalog items, reviews, pagination
"""

from __future__ import annotations

from moctale_relay.models.browser import (
    BrowserTab,
    BrowserWindow,
    ContextMenuItem,
    PendingSearchRecord,
)
from moctale_relay.models.envelope import (
    Acknowledgement,
    Envelope,
    ErrorKind,
    Failure,
    MediaDetails,
    PendingSearch,
    SearchResults,
    SessionStatus,
    Success,
    failure,
    parse_envelope,
)
from moctale_relay.models.media import (
    MediaItem,
    MediaItemDetails,
    MediaKind,
    Pagination,
    Review,
    WireModel,
)

__all__ = [
    "Acknowledgement",
    "BrowserTab",
    "BrowserWindow",
    "ContextMenuItem",
    "Envelope",
    "ErrorKind",
    "Failure",
    "MediaDetails",
    "MediaItem",
    "MediaItemDetails",
    "MediaKind",
    "Pagination",
    "PendingSearch",
    "PendingSearchRecord",
    "Review",
    "SearchResults",
    "SessionStatus",
    "Success",
    "WireModel",
    "failure",
    "parse_envelope",
]
