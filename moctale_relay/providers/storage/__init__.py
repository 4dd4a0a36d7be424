"""Durable storage providers."""

from moctale_relay.providers.storage.sqlite_storage import SQLiteStorageProvider

__all__ = ["SQLiteStorageProvider"]
