"""Utility modules for moctale-relay.

- **errors** -- Domain-specific exception hierarchy rooted at
  MoctaleRelayError; runtime, agent and storage failures each raise their
  own subclass so the locator can map them to distinct error kinds.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from moctale_relay.utils.errors import (
    AgentUnreachableError,
    ConfigurationError,
    InjectionError,
    MoctaleRelayError,
    StorageError,
    TabNotFoundError,
)

# -- Structured logging setup ----------------------------------------------
from moctale_relay.utils.logging import configure_logging, get_logger

__all__ = [
    "AgentUnreachableError",
    "ConfigurationError",
    "InjectionError",
    "MoctaleRelayError",
    "StorageError",
    "TabNotFoundError",
    "configure_logging",
    "get_logger",
]
