"""Unit tests for the terminal popup — formatting, RelayClient and commands."""

from __future__ import annotations

import json
from argparse import Namespace
from typing import Any

import httpx
import pytest

from moctale_relay.cli.client import RelayClient
from moctale_relay.cli.popup import (
    _build_parser,
    format_details,
    format_media_card,
    format_rating,
    format_search_results,
    render,
    run_command,
)
from moctale_relay.models.envelope import SearchResults
from moctale_relay.models.media import MediaItem, MediaItemDetails, MediaKind, Pagination, Review

RELAY_URL = "http://relay.test"


def _item(**overrides: Any) -> MediaItem:
    fields = {
        "id": "dune-2021",
        "title": "Dune",
        "year": 2021,
        "rating": 8.4,
        "rating_count": 1520,
        "slug": "dune-2021",
        "detail_path": "/content/dune-2021",
    }
    fields.update(overrides)
    return MediaItem(**fields)


def _relay(replies: dict[str, Any], sent: list[dict] | None = None) -> RelayClient:
    """RelayClient whose coordinator answers by message type."""

    def handler(request: httpx.Request) -> httpx.Response:
        message = json.loads(request.content)
        if sent is not None:
            sent.append(message)
        return httpx.Response(200, json=replies[message["type"]])

    return RelayClient(RELAY_URL, transport=httpx.MockTransport(handler))


def _args(command: str, **kwargs: Any) -> Namespace:
    defaults = {"json": False, "query": None, "movie_id": None, "clear": False}
    defaults.update(kwargs)
    return Namespace(command=command, **defaults)


# ======================================================================
# Formatting
# ======================================================================


class TestFormatting:
    def test_format_rating(self) -> None:
        assert format_rating(8) == "8.0"
        assert format_rating("7.5") == "7.5"
        assert format_rating(None) is None
        assert format_rating("n/a") is None

    def test_movie_card(self) -> None:
        card = format_media_card(_item())
        assert card.splitlines() == [
            "Dune",
            "  2021  |  ★ 8.4 (1520)",
            "  id: dune-2021  (/content/dune-2021)",
        ]

    def test_series_card_has_badge(self) -> None:
        card = format_media_card(_item(title="Dune: Prophecy", kind=MediaKind.SERIES, rating=None))
        assert card.splitlines()[0] == "[series] Dune: Prophecy"
        assert "★" not in card

    def test_long_summary_is_truncated(self) -> None:
        card = format_media_card(_item(summary="x" * 200))
        assert "  " + "x" * 160 + "..." in card.splitlines()

    def test_search_header(self) -> None:
        envelope = SearchResults(
            results=[_item()],
            pagination=Pagination(total_pages=3, current_page=1),
            cached=True,
        )
        header = format_search_results(envelope, "dune").splitlines()[0]
        assert header == '1 result(s) for "dune" (cached) - page 1 of 3'

    def test_no_results(self) -> None:
        assert format_search_results(SearchResults(), "zzz") == 'No results for "zzz".'

    def test_details(self) -> None:
        details = MediaItemDetails(
            **_item().model_dump(),
            genres=["Sci-Fi"],
            director="Denis Villeneuve",
            reviews=[Review(author="alice", rating=9, text="Epic.")],
        )
        text = format_details(details)
        assert "  Genres:    Sci-Fi" in text
        assert "  Director:  Denis Villeneuve" in text
        assert "    - alice (9.0): Epic." in text


class TestRender:
    def test_session(self) -> None:
        assert render({"success": True, "isLoggedIn": True, "username": "alice"}) == "Logged in as alice"
        assert render({"success": True, "isLoggedIn": True}) == "Connected to Moctale"

    def test_logged_out_session_points_to_login(self) -> None:
        text = render({"success": True, "isLoggedIn": False, "message": "No cookie."})
        assert text.startswith("No cookie.")
        assert "moctale-relay login" in text

    def test_no_tab_failure_points_to_open(self) -> None:
        text = render({"success": False, "error": "NO_MOCTALE_TAB", "message": "Open a tab"})
        assert text.splitlines()[0] == "Open a tab"
        assert "moctale-relay open" in text

    def test_generic_failure(self) -> None:
        assert render({"success": False, "error": "API_ERROR", "message": "boom"}) == "Error: boom"

    def test_unknown_error_kind(self) -> None:
        assert render({"success": False, "error": "SOMETHING_NEW"}) == "Error: SOMETHING_NEW"

    def test_acknowledgement(self) -> None:
        assert render({"success": True}) == "OK"


# ======================================================================
# RelayClient
# ======================================================================


class TestRelayClient:
    @pytest.mark.asyncio
    async def test_sends_type_and_payload(self) -> None:
        sent: list[dict] = []
        client = _relay({"SEARCH_MOVIES": {"success": True, "results": []}}, sent)
        reply = await client.send("SEARCH_MOVIES", query="dune")
        await client.aclose()
        assert sent == [{"type": "SEARCH_MOVIES", "query": "dune"}]
        assert reply == {"success": True, "results": []}

    @pytest.mark.asyncio
    async def test_unreachable_relay(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with RelayClient(RELAY_URL, transport=httpx.MockTransport(refuse)) as client:
            reply = await client.send("CHECK_SESSION")
        assert reply["success"] is False
        assert reply["error"] == "COMMUNICATION_ERROR"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b""),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json=["not", "an", "envelope"]),
        ],
    )
    @pytest.mark.asyncio
    async def test_empty_or_malformed_reply(self, response: httpx.Response) -> None:
        transport = httpx.MockTransport(lambda request: response)
        async with RelayClient(RELAY_URL, transport=transport) as client:
            reply = await client.send("CHECK_SESSION")
        assert reply == {
            "success": False,
            "error": "NO_RESPONSE",
            "message": "The relay sent no response",
        }


# ======================================================================
# Commands
# ======================================================================


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_search_prints_cards(self, capsys: pytest.CaptureFixture[str]) -> None:
        client = _relay({"SEARCH_MOVIES": SearchResults(results=[_item()]).to_wire()})
        status = await run_command(_args("search", query="dune"), client)
        out = capsys.readouterr().out
        assert status == 0
        assert out.startswith('1 result(s) for "dune"')

    @pytest.mark.asyncio
    async def test_search_without_query_consumes_pending(self, capsys: pytest.CaptureFixture[str]) -> None:
        sent: list[dict] = []
        client = _relay(
            {
                "GET_PENDING_SEARCH": {"success": True, "query": "Oppenheimer"},
                "CLEAR_PENDING_SEARCH": {"success": True},
                "SEARCH_MOVIES": {"success": True, "results": []},
            },
            sent,
        )
        status = await run_command(_args("search"), client)
        assert status == 0
        assert [m["type"] for m in sent] == ["GET_PENDING_SEARCH", "CLEAR_PENDING_SEARCH", "SEARCH_MOVIES"]
        assert sent[-1]["query"] == "Oppenheimer"
        assert 'No results for "Oppenheimer".' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_search_without_query_or_pending(self, capsys: pytest.CaptureFixture[str]) -> None:
        sent: list[dict] = []
        client = _relay(
            {"GET_PENDING_SEARCH": {"success": False, "error": "NO_PENDING_SEARCH"}},
            sent,
        )
        status = await run_command(_args("search"), client)
        assert status == 1
        assert [m["type"] for m in sent] == ["GET_PENDING_SEARCH"]
        assert "Please enter a search term" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failure_exit_status_and_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        reply = {"success": False, "error": "NO_MOCTALE_TAB", "message": "Open a tab"}
        client = _relay({"CHECK_SESSION": reply})
        status = await run_command(_args("session", json=True), client)
        assert status == 1
        assert json.loads(capsys.readouterr().out) == reply

    @pytest.mark.asyncio
    async def test_pending_with_clear(self, capsys: pytest.CaptureFixture[str]) -> None:
        sent: list[dict] = []
        client = _relay(
            {
                "GET_PENDING_SEARCH": {"success": True, "query": "Dune"},
                "CLEAR_PENDING_SEARCH": {"success": True},
            },
            sent,
        )
        status = await run_command(_args("pending", clear=True), client)
        assert status == 0
        assert [m["type"] for m in sent] == ["GET_PENDING_SEARCH", "CLEAR_PENDING_SEARCH"]
        assert capsys.readouterr().out.strip() == "Pending search: Dune"

    @pytest.mark.asyncio
    async def test_details_sends_movie_id(self) -> None:
        sent: list[dict] = []
        client = _relay({"GET_MOVIE_DETAILS": {"success": False, "error": "NOT_FOUND"}}, sent)
        await run_command(_args("details", movie_id="dune-2021"), client)
        assert sent == [{"type": "GET_MOVIE_DETAILS", "movieId": "dune-2021"}]


class TestParser:
    def test_global_flags_and_subcommands(self) -> None:
        args = _build_parser().parse_args(["--json", "--url", "http://x", "search", "dune"])
        assert args.json is True
        assert args.url == "http://x"
        assert args.command == "search"
        assert args.query == "dune"

    def test_serve_port(self) -> None:
        args = _build_parser().parse_args(["serve", "--port", "9000"])
        assert args.port == 9000
        assert args.host is None

    def test_details_requires_id(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["details"])
