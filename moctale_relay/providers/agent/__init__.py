"""Page-context agent for moctale.in.

The agent performs the authenticated catalog calls on behalf of the
coordinator.  Login detection is split into individually testable probes
(:mod:`~moctale_relay.providers.agent.auth_probes`).
"""

from moctale_relay.providers.agent.auth_probes import (
    ApiProbe,
    AuthDetector,
    AuthProbe,
    AuthProbeResult,
    CookieProbe,
    MarkupProbe,
    default_auth_probes,
)
from moctale_relay.providers.agent.moctale_agent import MoctalePageAgent
from moctale_relay.providers.agent.page_session import PageSession, extract_csrf_token

__all__ = [
    "ApiProbe",
    "AuthDetector",
    "AuthProbe",
    "AuthProbeResult",
    "CookieProbe",
    "MarkupProbe",
    "MoctalePageAgent",
    "PageSession",
    "default_auth_probes",
    "extract_csrf_token",
]
