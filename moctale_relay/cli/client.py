# =============================================================================
# moctale_relay/cli/client.py - UI Adapter Transport
# =============================================================================
#
# The popup's only way to reach the coordinator: POST one message to
# /api/v1/messages and read back one envelope.  Mirrors the extension
# popup's sendMessage() contract:
#
#   - transport failure (server down, timeout)  → COMMUNICATION_ERROR
#   - empty / non-JSON reply                    → NO_RESPONSE
#   - anything else                             → the envelope as sent
#
# send() therefore never raises for transport problems; callers branch on
# the envelope's ``success`` flag exactly like they do for router failures.
# =============================================================================

"""HTTP client for the coordinator's message endpoint."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from moctale_relay.models.envelope import ErrorKind, failure
from moctale_relay.utils.logging import get_logger

_MESSAGES_PATH = "/api/v1/messages"


class RelayClient:
    """Sends typed UI messages to a running coordinator.

    Parameters
    ----------
    base_url:
        Coordinator root, e.g. ``http://127.0.0.1:8765``.
    timeout:
        Per-request timeout in seconds.  Must exceed the coordinator's own
        agent timeout so its failure envelope arrives first.
    transport:
        Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def send(self, message_type: str, **data: Any) -> dict[str, Any]:
        """Send ``{"type": message_type, **data}`` and return the reply envelope."""
        try:
            response = await self._client.post(_MESSAGES_PATH, json={"type": message_type, **data})
        except httpx.HTTPError as exc:
            self._logger.warning("relay_unreachable", type=message_type, error=str(exc))
            return failure(
                ErrorKind.COMMUNICATION_ERROR, str(exc) or "Could not reach the relay"
            ).to_wire()

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        if not isinstance(body, dict) or "success" not in body:
            return failure(ErrorKind.NO_RESPONSE, "The relay sent no response").to_wire()
        return body

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RelayClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
