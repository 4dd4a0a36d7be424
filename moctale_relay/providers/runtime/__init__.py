"""Browser runtime providers."""

from moctale_relay.providers.runtime.local_runtime import AgentFactory, LocalBrowserRuntime

__all__ = ["AgentFactory", "LocalBrowserRuntime"]
