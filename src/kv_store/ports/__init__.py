"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: APIs offered to clients (KeyValueStore)
- Outbound ports: Dependencies on external systems (StorageEngine)

Adapters implement these ports with concrete functionality.
"""

from kv_store.ports.inbound import (
    EmptyTable,
    EngineFailure,
    KeyMissing,
    KeyValueStore,
    NotFoundError,
    StoreError,
)
from kv_store.ports.outbound import (
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
    # Inbound ports
    "KeyValueStore",
    "StoreError",
    "EngineFailure",
    "NotFoundError",
    "KeyMissing",
    "EmptyTable",
    # Outbound ports
    "StorageEngine",
    "ReadTransaction",
    "WriteTransaction",
    "ReadOnlyTable",
    "WritableTable",
    "EngineError",
    "TableDoesNotExistError",
    "StoreOpenError",
]
