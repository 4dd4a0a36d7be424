"""Configuration module — exports Settings and load_config."""

from moctale_relay.config.loader import load_config
from moctale_relay.config.settings import Settings

__all__ = ["Settings", "load_config"]
