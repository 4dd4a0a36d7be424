"""Locating the target tab and keeping the page agent alive in it.

The agent only exists inside a live Moctale page; it cannot run on its own.
So every routed request re-resolves the tab and re-verifies the agent:

    locate_tab()  ──none──→  NO_MOCTALE_TAB
        │
    ensure_agent_present(tab)
        PING (short timeout) ──pong──→ ready
        otherwise inject + settle delay ──fails──→ INJECTION_FAILED
        │
    send message (fixed timeout)
        timeout        → NETWORK_ERROR
        channel broke  → COMMUNICATION_ERROR
        no reply       → COMMUNICATION_ERROR

None of these outcomes raise: every failure comes back as a failure
envelope dict, the same shape the agent itself answers with.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from moctale_relay.interfaces.browser_runtime import IBrowserRuntime
from moctale_relay.models.browser import BrowserTab
from moctale_relay.models.envelope import ErrorKind, failure
from moctale_relay.utils.errors import MoctaleRelayError
from moctale_relay.utils.logging import get_logger


class AgentLocator:
    """Finds the Moctale tab, ensures the agent is present, forwards messages.

    Parameters
    ----------
    runtime:
        The host browser runtime.
    origins:
        URL prefixes identifying the target site (scheme + host).
    timeout:
        Seconds to wait for the agent's answer to a forwarded message.
    probe_timeout:
        Seconds to wait for the liveness ``PING``.
    settle_delay:
        Seconds to wait after an injection before talking to the new agent.
    """

    def __init__(
        self,
        runtime: IBrowserRuntime,
        origins: list[str],
        timeout: float = 10.0,
        probe_timeout: float = 1.0,
        settle_delay: float = 0.1,
    ) -> None:
        self._runtime = runtime
        self._origins = tuple(origins)
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        self._settle_delay = settle_delay
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def matches(self, url: str | None) -> bool:
        """Return ``True`` when *url* belongs to one of the target origins."""
        return bool(url) and url.startswith(self._origins)

    async def locate_tab(self) -> BrowserTab | None:
        """Return the first open tab on the target site, in host order."""
        for tab in await self._runtime.query_tabs():
            if self.matches(tab.url):
                return tab
        return None

    async def ensure_agent_present(self, tab: BrowserTab) -> bool:
        """Make sure an agent answers in *tab*, injecting one if needed.

        Returns ``False`` only when injection fails.
        """
        try:
            reply = await asyncio.wait_for(
                self._runtime.send_message(tab.id, {"type": "PING"}),
                timeout=self._probe_timeout,
            )
            if reply and reply.get("pong") is True:
                return True
        except (MoctaleRelayError, asyncio.TimeoutError) as exc:
            self._logger.debug("agent_ping_failed", tab_id=tab.id, error=str(exc))

        try:
            await self._runtime.inject_agent(tab.id)
        except MoctaleRelayError as exc:
            self._logger.error("agent_injection_failed", tab_id=tab.id, error=str(exc))
            return False

        await asyncio.sleep(self._settle_delay)
        return True

    async def send(self, message: dict[str, Any]) -> dict[str, Any]:
        """Forward *message* to the agent and return its reply (or a failure dict)."""
        tab = await self.locate_tab()
        if tab is None:
            return failure(
                ErrorKind.NO_TARGET_TAB, "Please open moctale.in in a browser tab first"
            ).to_wire()

        if not await self.ensure_agent_present(tab):
            return failure(
                ErrorKind.INJECTION_FAILED, "Failed to connect to Moctale tab"
            ).to_wire()

        try:
            reply = await asyncio.wait_for(
                self._runtime.send_message(tab.id, message),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning("agent_send_timeout", tab_id=tab.id, type=message.get("type"))
            return failure(
                ErrorKind.NETWORK_ERROR,
                f"Moctale tab did not answer within {self._timeout:g} seconds",
            ).to_wire()
        except MoctaleRelayError as exc:
            self._logger.error("agent_send_failed", tab_id=tab.id, error=str(exc))
            return failure(
                ErrorKind.COMMUNICATION_ERROR, "Failed to communicate with Moctale tab"
            ).to_wire()

        if not reply:
            return failure(
                ErrorKind.COMMUNICATION_ERROR, "Moctale tab sent no response"
            ).to_wire()
        return reply
