"""Outbound adapters for the key-value store.

Exports:
    - SqliteStore: SQLite (WAL mode) implementation of StorageEngine
    - open_or_create: Open an existing store file or create a new one
"""

from kv_store.adapters.outbound.sqlite_engine import (
    SqliteReadTransaction,
    SqliteStore,
    SqliteWriteTransaction,
    open_or_create,
)

__all__ = [
    "SqliteStore",
    "SqliteReadTransaction",
    "SqliteWriteTransaction",
    "open_or_create",
]
