"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g., AGENT_TIMEOUT_SECONDS=5
#      (highest priority - always wins)
#   2. **.env file** - key=value lines in the project root .env file
#
# The mapping is automatic: field name `moctale_auth_token` maps to env var
# `MOCTALE_AUTH_TOKEN`.  List fields (``moctale_origins``) are given as
# JSON, e.g. MOCTALE_ORIGINS='["https://www.moctale.in"]'.
#
# SECURITY: MOCTALE_AUTH_TOKEN is the browser's session cookie.  Keep it in
# .env (git-ignored), never in config/config.yaml.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """moctale-relay settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Target site ===
    moctale_base_url: str = "https://www.moctale.in"
    # Origins a tab URL must start with to count as the target tab.
    moctale_origins: list[str] = ["https://www.moctale.in", "https://moctale.in"]
    # Session cookie shared by the local runtime's tabs.  Empty = logged out.
    moctale_auth_token: str = ""
    moctale_auth_cookie: str = "auth_token"

    # === Agent ===
    agent_timeout_seconds: float = 10.0
    agent_probe_timeout_seconds: float = 1.0
    agent_settle_delay_seconds: float = 0.1
    upstream_timeout_seconds: float = 10.0

    # === Cache TTLs ===
    cache_ttl_session_seconds: float = 60.0
    cache_ttl_search_seconds: float = 300.0
    cache_ttl_details_seconds: float = 900.0
    cache_max_entries: int = 512

    # === Pending search handoff ===
    pending_search_max_age_seconds: float = 300.0
    storage_db_path: str = "data/relay_storage.db"

    # === App Config ===
    app_host: str = "127.0.0.1"
    app_port: int = 8765
    app_env: str = "development"
    log_level: str = "INFO"

    # === UI adapter ===
    relay_url: str = "http://127.0.0.1:8765"
    relay_timeout_seconds: float = 15.0

    def get_cache_ttls(self) -> dict[str, float]:
        """Return the per-category TTLs keyed by cache category name."""
        return {
            "sessionState": self.cache_ttl_session_seconds,
            "searchResults": self.cache_ttl_search_seconds,
            "movieDetails": self.cache_ttl_details_seconds,
        }
