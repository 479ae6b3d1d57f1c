"""Application layer for the key-value store.

The application layer orchestrates the storage engine and the domain
lock to fulfil the two use cases: read a key, write a key.

Exports:
    - KeyValueService: Process-wide owner of the store (locking,
      logging, metrics, tracing)
    - TransactionalStore: One transaction per read/write, no locking
"""

from kv_store.application.access_layer import TransactionalStore
from kv_store.application.kv_service import KeyValueService

__all__ = [
    "KeyValueService",
    "TransactionalStore",
]
