# =============================================================================
# moctale_relay/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# The terminal UI adapter for moctale-relay.  It plays the role of the
# extension popup: it never talks to Moctale or to a tab directly, only
# to the coordinator's message endpoint.
#
#   popup.py   argparse subcommands, rendering of envelopes as text cards
#   client.py  the httpx transport (POST /api/v1/messages)
#
# Installed as the ``moctale-relay`` console script; also runnable as
# ``python -m moctale_relay.cli``.
# =============================================================================

"""Command-line UI adapter for the moctale-relay coordinator."""
