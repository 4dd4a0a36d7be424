"""Custom exception hierarchy for moctale-relay.

All application exceptions inherit from :class:`MoctaleRelayError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "local_runtime", "sqlite_storage", "moctale_agent")
caused the failure.

The hierarchy is organized by where the failure happens:

    MoctaleRelayError  (base -- catch-all for any relay error)
    +-- TabNotFoundError        (runtime: tab id no longer exists)
    +-- AgentUnreachableError   (runtime: no agent answered in the tab)
    +-- InjectionError          (runtime: agent code could not be injected)
    +-- StorageError            (durable key-value store failure)
    +-- ConfigurationError      (startup / missing config)

None of these are allowed to escape a request.  The agent locator turns
runtime errors into failure envelopes (``INJECTION_FAILED``,
``COMMUNICATION_ERROR``) and the message dispatcher turns anything else
into ``INTERNAL_ERROR``.
"""


class MoctaleRelayError(Exception):
    """Base exception for all moctale-relay errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[local_runtime] Tab 7 does not exist``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Browser runtime errors
# ---------------------------------------------------------------------------

class TabNotFoundError(MoctaleRelayError):
    """Raised when a tab id does not refer to an open tab."""

    def __init__(
        self,
        message: str = "Tab does not exist",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AgentUnreachableError(MoctaleRelayError):
    """Raised when a message cannot be delivered to the agent in a tab.

    Covers both "never injected" and "tab navigated away" -- the locator
    treats the two identically and re-injects.
    """

    def __init__(
        self,
        message: str = "Could not establish connection to the page agent",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InjectionError(MoctaleRelayError):
    """Raised when the agent cannot be injected (restricted page, no permission)."""

    def __init__(
        self,
        message: str = "Cannot inject the page agent into this tab",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class StorageError(MoctaleRelayError):
    """Raised when the durable key-value store cannot be read or written."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(MoctaleRelayError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
