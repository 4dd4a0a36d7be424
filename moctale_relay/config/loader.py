"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. Settings defaults   - Field defaults of ``Settings``
#   2. config/config.yaml  - Static defaults checked into the repo
#   3. .env file           - Local developer overrides (not committed)
#   4. Environment vars    - Set at deploy time
#
# Only settings that were actually provided (by .env, the environment or
# the constructor) override the YAML file; defaults never do.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from moctale_relay.config.settings import Settings
from moctale_relay.utils.errors import ConfigurationError

# Settings field -> location in the resolved config tree.
_SETTINGS_PATHS: dict[str, tuple[str, ...]] = {
    "app_host": ("app", "host"),
    "app_port": ("app", "port"),
    "app_env": ("app", "env"),
    "moctale_base_url": ("moctale", "base_url"),
    "moctale_origins": ("moctale", "origins"),
    "moctale_auth_cookie": ("moctale", "auth_cookie"),
    "agent_timeout_seconds": ("agent", "timeout_seconds"),
    "agent_probe_timeout_seconds": ("agent", "probe_timeout_seconds"),
    "agent_settle_delay_seconds": ("agent", "settle_delay_seconds"),
    "cache_ttl_session_seconds": ("cache", "ttl_seconds", "sessionState"),
    "cache_ttl_search_seconds": ("cache", "ttl_seconds", "searchResults"),
    "cache_ttl_details_seconds": ("cache", "ttl_seconds", "movieDetails"),
    "cache_max_entries": ("cache", "max_entries"),
    "pending_search_max_age_seconds": ("pending_search", "max_age_seconds"),
    "storage_db_path": ("pending_search", "db_path"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Settings defaults fill keys the YAML file leaves out.  Settings that
    were explicitly provided override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge.  A fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file is malformed.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                message=f"Cannot parse {config_path}: {exc}",
                provider_name="config_loader",
            ) from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(
                message=f"{config_path} must contain a mapping at the top level",
                provider_name="config_loader",
            )
    else:
        yaml_config = {}

    settings = settings or Settings()
    config = _settings_tree(settings, _SETTINGS_PATHS)
    _deep_merge(config, yaml_config)
    explicit = {
        field: p for field, p in _SETTINGS_PATHS.items() if field in settings.model_fields_set
    }
    _deep_merge(config, _settings_tree(settings, explicit))
    return config


def _settings_tree(settings: Settings, paths: dict[str, tuple[str, ...]]) -> dict:
    """Nest the values of the given Settings fields at their config paths."""
    tree: dict = {}
    for field, (*parents, leaf) in paths.items():
        node = tree
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = getattr(settings, field)
    return tree


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
