"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the durable storage engine the
key-value store depends on.
"""

from kv_store.ports.outbound.storage_engine import (
    EngineError,
    ReadOnlyTable,
    ReadTransaction,
    StorageEngine,
    StoreOpenError,
    TableDoesNotExistError,
    WritableTable,
    WriteTransaction,
)

__all__ = [
    "StorageEngine",
    "ReadTransaction",
    "WriteTransaction",
    "ReadOnlyTable",
    "WritableTable",
    "EngineError",
    "TableDoesNotExistError",
    "StoreOpenError",
]
