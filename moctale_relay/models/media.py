"""Normalized catalog models produced by the page agent.

The agent converts Moctale's heterogeneous upstream JSON into these shapes
(see :mod:`moctale_relay.services.normalizer`); the router and the UI never
see raw upstream fields.  All models are frozen, so a cached search result
cannot be mutated by whoever reads it.

Invariants:
    - ``MediaItem.id`` and ``MediaItem.slug`` always come from the same
      upstream ``slug`` field.
    - ``MediaItem.detail_path`` is ``/content/<slug>``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every model that crosses a process boundary.

    Attributes are snake_case in Python and camelCase on the wire
    (``is_logged_in`` <-> ``isLoggedIn``).  Either spelling is accepted on
    input.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Serialise to the JSON-ready camelCase dict sent over the wire."""
        return self.model_dump(mode="json", by_alias=True)


class MediaKind(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Whether a catalog entry is a film or a series."""

    MOVIE = "movie"
    SERIES = "series"


class MediaItem(WireModel):
    """One catalog entry as shown in a search result card."""

    id: str
    title: str
    year: int | None = None
    rating: float | None = None
    rating_count: int = 0
    poster_url: str | None = None
    banner_url: str | None = None
    summary: str | None = None
    kind: MediaKind = MediaKind.MOVIE
    slug: str
    detail_path: str


class Review(WireModel):
    """A user review attached to a details response."""

    id: str | None = None
    author: str = "Anonymous"
    rating: float | None = None
    text: str = ""
    date: str | None = None
    helpful: int = 0


class MediaItemDetails(MediaItem):
    """A catalog entry with the extended fields of the content endpoint."""

    genres: list[str] = Field(default_factory=list)
    duration: int | str | None = None
    director: str | None = None
    cast: list[str] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)
    user_rating: float | None = None
    trailer: str | None = None
    streaming_platforms: list[str] = Field(default_factory=list)


class Pagination(WireModel):
    """Paging metadata of a search response."""

    total_pages: int = 1
    current_page: int = 1
    next_page: int | None = None
    previous_page: int | None = None
    count: int = 0
