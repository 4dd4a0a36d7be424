# =============================================================================
# moctale_relay/cli/popup.py - Terminal Popup (UI Adapter)
# =============================================================================
#
# The command-line counterpart of the extension popup.  Every subcommand
# sends exactly one or two messages to a running coordinator and renders
# the envelope it gets back:
#
#   session           CHECK_SESSION         → "Logged in as ..." / hints
#   search [QUERY]    SEARCH_MOVIES         → result cards
#                     (no QUERY: consume a fresh context-menu selection via
#                      GET_PENDING_SEARCH, then CLEAR_PENDING_SEARCH)
#   details ID        GET_MOVIE_DETAILS     → one detailed card
#   login             OPEN_LOGIN            → opens the login page in a tab
#   open              OPEN_MOCTALE          → focuses / opens the site tab
#   pending [--clear] GET_PENDING_SEARCH    → shows the handed-off query
#   serve             (runs the coordinator itself under uvicorn)
#
# Output modes:
#   - Text (default): cards like the popup renders them
#   - JSON (--json):  the raw envelope, for scripting
#
# Exit status is 0 for a success envelope and 1 for a failure envelope.
# Logs go to stderr so stdout carries only the rendered result.
# =============================================================================

"""Terminal popup for moctale-relay.

Usage::

    moctale-relay session
    moctale-relay search "dune"
    moctale-relay details dune-2021 --json
    moctale-relay serve --port 8765
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from moctale_relay.cli.client import RelayClient
from moctale_relay.config.settings import Settings
from moctale_relay.models.envelope import (
    ErrorKind,
    Failure,
    MediaDetails,
    SearchResults,
    SessionStatus,
    parse_envelope,
)
from moctale_relay.models.media import MediaItem, MediaItemDetails, MediaKind
from moctale_relay.utils.logging import configure_logging

_SUMMARY_LIMIT = 160


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_rating(rating: Any) -> str | None:
    """Render a rating with one decimal, or ``None`` when it is not a number."""
    if rating is None:
        return None
    try:
        return f"{float(rating):.1f}"
    except (TypeError, ValueError):
        return None


def format_media_card(item: MediaItem) -> str:
    """One search result as a text card."""
    badge = f"[{item.kind.value}] " if item.kind is not MediaKind.MOVIE else ""
    lines = [f"{badge}{item.title}"]

    meta: list[str] = []
    if item.year:
        meta.append(str(item.year))
    rating = format_rating(item.rating)
    if rating:
        meta.append(f"★ {rating}" + (f" ({item.rating_count})" if item.rating_count else ""))
    if meta:
        lines.append("  " + "  |  ".join(meta))

    if item.summary:
        summary = item.summary
        if len(summary) > _SUMMARY_LIMIT:
            summary = summary[:_SUMMARY_LIMIT] + "..."
        lines.append(f"  {summary}")
    lines.append(f"  id: {item.id}  ({item.detail_path})")
    return "\n".join(lines)


def format_search_results(envelope: SearchResults, query: str) -> str:
    if not envelope.results:
        return f'No results for "{query}".'
    header = f'{len(envelope.results)} result(s) for "{query}"'
    if envelope.cached:
        header += " (cached)"
    if envelope.pagination.total_pages > 1:
        header += (
            f" - page {envelope.pagination.current_page} of {envelope.pagination.total_pages}"
        )
    cards = [format_media_card(item) for item in envelope.results]
    return "\n\n".join([header, *cards])


def format_details(details: MediaItemDetails) -> str:
    """A details response as a longer card, reviews included."""
    lines = [format_media_card(details)]
    if details.genres:
        lines.append(f"  Genres:    {', '.join(details.genres)}")
    if details.duration:
        lines.append(f"  Duration:  {details.duration}")
    if details.director:
        lines.append(f"  Director:  {details.director}")
    if details.cast:
        lines.append(f"  Cast:      {', '.join(details.cast[:8])}")
    if details.streaming_platforms:
        lines.append(f"  Watch on:  {', '.join(details.streaming_platforms)}")
    user_rating = format_rating(details.user_rating)
    if user_rating:
        lines.append(f"  Your rating: {user_rating}")
    if details.reviews:
        lines.append("")
        lines.append(f"  Reviews ({len(details.reviews)}):")
        for review in details.reviews[:5]:
            rating = format_rating(review.rating)
            prefix = f"{review.author}" + (f" ({rating})" if rating else "")
            lines.append(f"    - {prefix}: {review.text[:_SUMMARY_LIMIT]}")
    return "\n".join(lines)


def format_session(status: SessionStatus) -> str:
    if status.is_logged_in and status.username:
        return f"Logged in as {status.username}"
    if status.is_logged_in:
        return "Connected to Moctale"
    return (status.message or "Not logged in to Moctale.") + "  Run `moctale-relay login`."


def format_failure(failed: Failure) -> str:
    """Failure message, with a next step for the failures the user can fix."""
    message = failed.message or str(getattr(failed.error, "value", failed.error))
    if failed.error == ErrorKind.NO_TARGET_TAB:
        return f"{message}\n  Run `moctale-relay open` to open one."
    if failed.error == ErrorKind.UNAUTHORIZED:
        return f"{message}\n  Run `moctale-relay login` to sign in."
    return f"Error: {message}"


def render(body: dict[str, Any], query: str = "") -> str:
    """Render any envelope the coordinator can send."""
    envelope = parse_envelope(body)
    if isinstance(envelope, Failure):
        return format_failure(envelope)
    if isinstance(envelope, SessionStatus):
        return format_session(envelope)
    if isinstance(envelope, SearchResults):
        return format_search_results(envelope, query)
    if isinstance(envelope, MediaDetails):
        return format_details(envelope.data)
    return "OK"


# ---------------------------------------------------------------------------
# Command runners
# ---------------------------------------------------------------------------


async def _consume_pending_search(client: RelayClient) -> str | None:
    """Read a fresh context-menu selection and clear it after use."""
    reply = await client.send("GET_PENDING_SEARCH")
    if reply.get("success") and reply.get("query"):
        await client.send("CLEAR_PENDING_SEARCH")
        return reply["query"]
    return None


async def _run(args: argparse.Namespace, client: RelayClient) -> tuple[dict[str, Any], str]:
    """Execute one subcommand; returns ``(envelope, query)``."""
    if args.command == "session":
        return await client.send("CHECK_SESSION"), ""

    if args.command == "search":
        query = args.query
        if not query:
            query = await _consume_pending_search(client)
            if query:
                print(f'Searching for selected text "{query}"', file=sys.stderr)
        if not query:
            return (
                {"success": False, "error": ErrorKind.INVALID_QUERY.value,
                 "message": "Please enter a search term"},
                "",
            )
        return await client.send("SEARCH_MOVIES", query=query), query

    if args.command == "details":
        return await client.send("GET_MOVIE_DETAILS", movieId=args.movie_id), ""

    if args.command == "login":
        return await client.send("OPEN_LOGIN"), ""

    if args.command == "open":
        return await client.send("OPEN_MOCTALE"), ""

    # pending
    reply = await client.send("GET_PENDING_SEARCH")
    if reply.get("success") and args.clear:
        await client.send("CLEAR_PENDING_SEARCH")
    return reply, ""


async def run_command(args: argparse.Namespace, client: RelayClient) -> int:
    """Run a client subcommand, print its result, and return the exit status."""
    async with client:
        body, query = await _run(args, client)

    if args.json:
        print(json.dumps(body, indent=2, ensure_ascii=False))
    elif args.command == "pending" and body.get("success"):
        print(f"Pending search: {body.get('query')}")
    else:
        print(render(body, query))
    return 0 if body.get("success") else 1


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the popup CLI."""
    parser = argparse.ArgumentParser(
        prog="moctale-relay",
        description="Search Moctale through a logged-in browser tab.",
    )
    parser.add_argument("--url", default=None, help="Coordinator URL (default: RELAY_URL)")
    parser.add_argument(
        "--json", action="store_true", help="Print the raw response envelope as JSON"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("session", help="Show whether the browser session is logged in")

    search_parser = subparsers.add_parser("search", help="Search movies and series")
    search_parser.add_argument(
        "query", nargs="?", default=None,
        help="Search term (default: the pending context-menu selection)",
    )

    details_parser = subparsers.add_parser("details", help="Show one catalog entry")
    details_parser.add_argument("movie_id", help="Catalog id (the slug, e.g. dune-2021)")

    subparsers.add_parser("login", help="Open the Moctale login page in a tab")
    subparsers.add_parser("open", help="Focus the Moctale tab, or open one")

    pending_parser = subparsers.add_parser("pending", help="Show the pending context-menu search")
    pending_parser.add_argument(
        "--clear", action="store_true", help="Clear the pending search after showing it"
    )

    serve_parser = subparsers.add_parser("serve", help="Run the coordinator")
    serve_parser.add_argument("--host", default=None, help="Bind host (default: APP_HOST)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: APP_PORT)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``moctale-relay``."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        # Deferred import: only the server needs FastAPI and uvicorn.
        from moctale_relay.main import main as serve

        serve(host=args.host, port=args.port)
        return

    app_settings = Settings()
    configure_logging(log_level="WARNING", stream=sys.stderr)
    client = RelayClient(
        base_url=args.url or app_settings.relay_url,
        timeout=app_settings.relay_timeout_seconds,
    )
    sys.exit(asyncio.run(run_command(args, client)))


if __name__ == "__main__":
    main()
