"""Domain services for the key-value store.

Services implement logic that doesn't belong to a single value object.
"""

from kv_store.domain.services.rw_lock import ReadWriteLock

__all__ = [
    "ReadWriteLock",
]
