"""Login-state detection as a prioritized chain of probes.

Each probe inspects one signal and answers with a definite
:class:`AuthProbeResult` or ``None`` ("can't tell").  The
:class:`AuthDetector` runs them in order and the first definite answer
wins:

    CookieProbe  — ``auth_token`` cookie present        (fastest)
    MarkupProbe  — avatar / user menu / logout markers   (no network)
    ApiProbe     — ``GET /api/me``                       (authoritative, slow)

When every probe abstains the session is reported as logged out.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
import structlog

from moctale_relay.models.envelope import SessionStatus
from moctale_relay.providers.agent.page_session import PageSession
from moctale_relay.utils.logging import get_logger

# Selectors for logged-in indicators on moctale.in pages.  Order matters:
# the first matching marker decides the indicator name.
DEFAULT_AUTH_SELECTORS: dict[str, str] = {
    "userAvatar": 'img[alt*="avatar"], img[alt*="profile"], [class*="avatar"]',
    "userMenu": '[aria-label*="account"], [aria-label*="profile"], [class*="user-menu"]',
    "logoutButton": 'button[aria-label*="logout"], a[href*="logout"]',
    "profileLink": 'a[href*="/u/"], a[href*="/my-"]',
}

_LOGGED_OUT_PATHS = frozenset({"/login", "/signup"})
_PROFILE_PATH_RE = re.compile(r"/u/([^/]+)")


@dataclass(frozen=True)
class AuthProbeResult:
    """A definite answer from one probe."""

    is_logged_in: bool
    method: str
    username: str | None = None
    indicator: str | None = None


class AuthProbe(ABC):
    """One signal in the detection chain."""

    name: str = "probe"

    @abstractmethod
    async def probe(self, session: PageSession) -> AuthProbeResult | None:
        """Return a definite result, or ``None`` when this signal is inconclusive."""


class CookieProbe(AuthProbe):
    """Logged in when the session cookie is set.  Never says "logged out"."""

    name = "cookie"

    def __init__(self, cookie_name: str = "auth_token") -> None:
        self._cookie_name = cookie_name

    async def probe(self, session: PageSession) -> AuthProbeResult | None:
        if session.cookie(self._cookie_name):
            # The cookie carries no username.
            return AuthProbeResult(
                is_logged_in=True,
                method=self.name,
                indicator=self._cookie_name,
            )
        return None


class MarkupProbe(AuthProbe):
    """Looks for logged-in markers in the page, or for the login page itself."""

    name = "dom"

    def __init__(self, selectors: dict[str, str] | None = None) -> None:
        self._selectors = selectors or DEFAULT_AUTH_SELECTORS

    async def probe(self, session: PageSession) -> AuthProbeResult | None:
        soup = await session.page_markup()
        if soup is not None:
            for key, selector in self._selectors.items():
                element = soup.select_one(selector)
                if element is None:
                    continue
                return AuthProbeResult(
                    is_logged_in=True,
                    method=self.name,
                    username=self._username_from(key, element),
                    indicator=key,
                )

        if urlparse(session.page_url).path in _LOGGED_OUT_PATHS:
            return AuthProbeResult(is_logged_in=False, method=self.name, indicator="login_page")

        return None

    @staticmethod
    def _username_from(key: str, element) -> str | None:  # noqa: ANN001
        if key == "userAvatar":
            return element.get("alt") or element.get("title") or None
        if key == "profileLink":
            match = _PROFILE_PATH_RE.search(element.get("href") or "")
            return match.group(1) if match else None
        return None


class ApiProbe(AuthProbe):
    """Asks the profile endpoint; 401/403 is a definite "logged out"."""

    name = "api"

    def __init__(self, endpoint: str = "/api/me") -> None:
        self._endpoint = endpoint
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def probe(self, session: PageSession) -> AuthProbeResult | None:
        try:
            response = await session.get(self._endpoint)
            if response.is_success:
                data = response.json()
                user = data.get("user") if isinstance(data.get("user"), dict) else {}
                return AuthProbeResult(
                    is_logged_in=True,
                    method=self.name,
                    username=data.get("username") or data.get("name") or user.get("username"),
                )
            if response.status_code in (401, 403):
                return AuthProbeResult(
                    is_logged_in=False,
                    method=self.name,
                    indicator="unauthorized",
                )
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            self._logger.warning("auth_api_probe_failed", error=str(exc))
        return None


class AuthDetector:
    """Runs the probe chain and builds the session status envelope."""

    def __init__(self, probes: list[AuthProbe]) -> None:
        self._probes = probes
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def detect(self, session: PageSession) -> SessionStatus:
        for probe in self._probes:
            result = await probe.probe(session)
            if result is not None:
                self._logger.debug(
                    "auth_detected",
                    method=result.method,
                    logged_in=result.is_logged_in,
                )
                return SessionStatus(
                    is_logged_in=result.is_logged_in,
                    username=result.username,
                    method=result.method,
                    indicator=result.indicator,
                )

        return SessionStatus(
            is_logged_in=False,
            method="cookie",
            message="No auth_token cookie found. Please log in.",
        )


def default_auth_probes(cookie_name: str = "auth_token") -> list[AuthProbe]:
    """The standard cookie → markup → API chain."""
    return [CookieProbe(cookie_name), MarkupProbe(), ApiProbe()]
