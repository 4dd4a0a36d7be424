"""moctale-relay: background coordinator between a UI and a logged-in Moctale tab."""

__version__ = "0.1.0"
