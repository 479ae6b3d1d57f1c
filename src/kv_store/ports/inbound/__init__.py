"""Inbound ports - API contracts for the key-value store.

Inbound ports define the interface the HTTP layer uses to read and
write keys, along with the error taxonomy it maps to responses.
"""

from kv_store.ports.inbound.key_value_store import (
    EmptyTable,
    EngineFailure,
    KeyMissing,
    KeyValueStore,
    NotFoundError,
    StoreError,
)

__all__ = [
    "KeyValueStore",
    "StoreError",
    "EngineFailure",
    "NotFoundError",
    "KeyMissing",
    "EmptyTable",
]
