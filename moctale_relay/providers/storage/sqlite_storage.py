"""SQLite-backed durable key-value storage.

Plays the part of the browser's persistent extension storage: a handful of
JSON values that must survive a coordinator restart.  Uses sync ``sqlite3``
-- each operation touches one tiny row, so event-loop blocking is
negligible.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

import structlog

from moctale_relay.interfaces.storage_provider import IStorageProvider
from moctale_relay.utils.errors import StorageError
from moctale_relay.utils.logging import get_logger

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    key        TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO {table} (key, value_json)
VALUES (?, ?)
ON CONFLICT(key)
DO UPDATE SET value_json = excluded.value_json,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT value_json FROM {table} WHERE key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE key = ?;"


class SQLiteStorageProvider(IStorageProvider):
    """Durable JSON key-value store backed by a single SQLite table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    table_name:
        Table name to use.
    """

    def __init__(self, db_path: str | Path, table_name: str = "kv_store") -> None:
        self._db_path = Path(db_path)
        self._table = table_name
        self._initialized = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the database directory and table.

        Called once during app startup; the public methods call it lazily
        as well so the provider also works without explicit setup.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(_CREATE_TABLE_SQL.format(table=self._table))
            conn.commit()
        finally:
            conn.close()
        self._initialized = True
        self._logger.info(
            "storage_initialized",
            db_path=str(self._db_path),
            table=self._table,
        )

    # ------------------------------------------------------------------
    # IStorageProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        row = self._execute(_SELECT_SQL, (key,), fetch=True)
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            self._logger.warning("storage_value_corrupt", key=key, error=str(exc)[:200])
            return None

    async def set(self, key: str, value: Any) -> None:
        self._execute(_UPSERT_SQL, (key, json.dumps(value)))

    async def remove(self, key: str) -> None:
        self._execute(_DELETE_SQL, (key,))

    def get_provider_name(self) -> str:
        return f"sqlite_storage:{self._table}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        """Open a new SQLite connection with WAL mode for concurrency."""
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _execute(self, sql: str, params: tuple, fetch: bool = False) -> Any:
        if not self._initialized:
            self.initialize()
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(sql.format(table=self._table), params)
                if fetch:
                    return cursor.fetchone()
                conn.commit()
                return None
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(
                message=f"SQLite operation failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
