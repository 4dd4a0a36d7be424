"""Abstract base class for the page-context network agent.

The agent lives inside a tab showing the target site and performs
authenticated HTTP calls with the session the browser already holds.  The
coordinator only ever talks to it through JSON messages:

    PING                    -> {"pong": true}
    CHECK_AUTH              -> session status envelope
    SEARCH {query, page}    -> search envelope
    GET_DETAILS {slug}      -> details envelope

Agents answer every message with a dict and never raise; failures are
failure envelopes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IPageAgent(ABC):
    """Contract for an agent injected into a browser tab."""

    @abstractmethod
    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any]:
        """Answer one coordinator message with a JSON-ready dict."""

    async def aclose(self) -> None:
        """Release resources held by the agent (tab closed or navigated)."""
