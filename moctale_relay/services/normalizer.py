"""Normalization of Moctale's upstream JSON into relay models.

Moctale's endpoints return loosely-shaped objects whose field names vary
between endpoints and over time (``name`` vs ``title``, ``image`` vs
``poster``, ``reviews`` vs ``userReviews``).  Everything in this module is a
pure function from raw dicts to frozen models, so the agent and the router
share one definition of "a normalized item".

Upstream search item format::

    {"name", "image", "year", "is_show", "slug", "banner", ...}

Upstream search page format::

    {"total_pages", "current_page", "next_page", "previous_page", "count",
     "data": [...]}
"""

from __future__ import annotations

import math
from typing import Any

import structlog
from pydantic import ValidationError

from moctale_relay.models.envelope import (
    ErrorKind,
    Failure,
    MediaDetails,
    SearchResults,
    SessionStatus,
)
from moctale_relay.models.media import MediaItem, MediaItemDetails, MediaKind, Pagination, Review
from moctale_relay.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def detail_path_for(slug: str) -> str:
    """Return the site path of a catalog entry."""
    return f"/content/{slug}"


def _first(*values: Any) -> Any:
    """Return the first truthy value, or ``None``."""
    for value in values:
        if value:
            return value
    return None


def _names(values: Any) -> list[str]:
    """Flatten a list of strings or ``{"name": ...}`` objects into names."""
    if not isinstance(values, list):
        return [str(values)] if values else []
    names: list[str] = []
    for value in values:
        if isinstance(value, dict):
            name = _first(value.get("name"), value.get("title"))
            if name:
                names.append(str(name))
        elif value:
            names.append(str(value))
    return names


# ---------------------------------------------------------------------------
# Lenient scalar coercion
# ---------------------------------------------------------------------------
#
# Upstream values arrive as numbers, numeric strings, placeholders like
# "N/A", or nested objects.  A value that cannot be read as the target type
# becomes the field's empty value instead of failing the whole response.


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_int(value: Any, default: int | None = None) -> int | None:
    number = _as_float(value)
    return int(number) if number is not None else default


def _as_str(value: Any) -> str | None:
    if value is None or value == "" or isinstance(value, (dict, list, bool)):
        return None
    return str(value)


def _as_duration(value: Any) -> int | str | None:
    """Runtime in minutes when numeric, else the upstream text (``"2h 35m"``)."""
    number = _as_float(value)
    if number is not None:
        return int(number)
    return _as_str(value)


def _item_fields(item: dict[str, Any]) -> dict[str, Any]:
    """Map one upstream item onto :class:`MediaItem` field names."""
    # The slug doubles as the id: it is what content URLs are built from.
    slug = str(item.get("slug") or item.get("id") or "")
    return {
        "id": slug,
        "title": _as_str(_first(item.get("name"), item.get("title"))) or slug,
        "year": _as_int(item.get("year")) or None,
        "rating": _as_float(item.get("rating")) or None,
        "rating_count": _as_int(_first(item.get("ratingCount"), item.get("rating_count")), 0),
        "poster_url": _as_str(_first(item.get("image"), item.get("poster"))),
        "banner_url": _as_str(item.get("banner")),
        "summary": _as_str(_first(item.get("summary"), item.get("description"))),
        "kind": MediaKind.SERIES if item.get("is_show") else MediaKind.MOVIE,
        "slug": slug,
        "detail_path": detail_path_for(slug),
    }


def normalize_media_item(item: dict[str, Any]) -> MediaItem:
    """Normalize one upstream search item."""
    return MediaItem(**_item_fields(item))


def normalize_review(review: dict[str, Any]) -> Review:
    """Normalize one upstream review object."""
    author = _first(review.get("author"), review.get("user"), review.get("username"))
    if isinstance(author, dict):
        author = _first(author.get("username"), author.get("name"))
    review_id = _first(review.get("id"), review.get("_id"))
    return Review(
        id=_as_str(review_id),
        author=_as_str(author) or "Anonymous",
        rating=_as_float(_first(review.get("rating"), review.get("score"))),
        text=_as_str(
            _first(
                review.get("text"),
                review.get("content"),
                review.get("review"),
                review.get("body"),
            )
        ) or "",
        date=_as_str(_first(review.get("date"), review.get("createdAt"), review.get("timestamp"))),
        helpful=_as_int(_first(review.get("helpful"), review.get("likes")), 0),
    )


def _normalize_each(raw: Any, normalize: Any, kind: str) -> list[Any]:
    """Normalize every dict in *raw*, skipping entries that still fail validation."""
    normalized = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        try:
            normalized.append(normalize(entry))
        except ValidationError as exc:
            _logger.warning("upstream_entry_skipped", kind=kind, error=str(exc)[:200])
    return normalized


def normalize_details(payload: dict[str, Any]) -> MediaItemDetails:
    """Normalize a content-endpoint response into :class:`MediaItemDetails`.

    The entry may be wrapped in ``movie``, ``content`` or ``data``.
    """
    movie = _first(payload.get("movie"), payload.get("content"), payload.get("data")) or payload
    directors = movie.get("directors") or []
    director = movie.get("director") or (directors[0] if directors else None)
    if isinstance(director, dict):
        director = director.get("name")
    return MediaItemDetails(
        **_item_fields(movie),
        genres=_names(_first(movie.get("genres"), movie.get("genre"))),
        duration=_as_duration(_first(movie.get("duration"), movie.get("runtime"))),
        director=_as_str(director),
        cast=_names(_first(movie.get("cast"), movie.get("actors"))),
        reviews=_normalize_each(
            _first(movie.get("reviews"), movie.get("userReviews")), normalize_review, "review"
        ),
        user_rating=_as_float(_first(movie.get("userRating"), movie.get("myRating"))),
        trailer=_as_str(_first(movie.get("trailer"), movie.get("trailerUrl"))),
        streaming_platforms=_names(
            _first(movie.get("platforms"), movie.get("streaming"), movie.get("watchOn"))
        ),
    )


def normalize_pagination(page: dict[str, Any], result_count: int) -> Pagination:
    """Build :class:`Pagination` from an upstream search page."""
    return Pagination(
        total_pages=_as_int(page.get("total_pages")) or 1,
        current_page=_as_int(page.get("current_page")) or 1,
        next_page=_as_int(page.get("next_page")),
        previous_page=_as_int(page.get("previous_page")),
        count=_as_int(page.get("count")) or result_count,
    )


def normalize_search_page(page: dict[str, Any], endpoint: str | None = None) -> SearchResults:
    """Convert an upstream search page into a :class:`SearchResults` envelope.

    An item that cannot be normalized is dropped; the rest of the page is kept.
    """
    items = _normalize_each(page.get("data"), normalize_media_item, "search_item")
    return SearchResults(
        results=items,
        pagination=normalize_pagination(page, len(items)),
        method="api",
        endpoint=endpoint,
    )


# ---------------------------------------------------------------------------
# Agent reply parsing (used by the request router)
# ---------------------------------------------------------------------------

def _failure_from(reply: dict[str, Any]) -> Failure:
    return Failure(
        error=reply.get("error") or ErrorKind.AGENT_ERROR,
        message=reply.get("message") or "",
    )


def parse_session_reply(reply: dict[str, Any]) -> SessionStatus | Failure:
    """Parse an agent ``CHECK_AUTH`` reply."""
    if reply.get("success") is False:
        return _failure_from(reply)
    return SessionStatus.model_validate({**reply, "success": True})


def parse_search_reply(reply: dict[str, Any]) -> SearchResults | Failure:
    """Parse an agent ``SEARCH`` reply.

    Accepts both the normalized envelope (``results`` + ``pagination``) and
    a raw upstream search page (``data`` + ``total_pages``), so the router
    always hands normalized items to the UI.
    """
    if reply.get("success") is False:
        return _failure_from(reply)
    if isinstance(reply.get("data"), list):
        return normalize_search_page(reply, endpoint=reply.get("endpoint"))
    return SearchResults.model_validate({**reply, "success": True})


def parse_details_reply(reply: dict[str, Any]) -> MediaDetails | Failure:
    """Parse an agent ``GET_DETAILS`` reply (normalized or raw content object)."""
    if reply.get("success") is False:
        return _failure_from(reply)
    data = reply.get("data")
    if isinstance(data, dict) and "detailPath" in data:
        return MediaDetails.model_validate({**reply, "success": True})
    return MediaDetails(data=normalize_details(reply), method=reply.get("method"))
