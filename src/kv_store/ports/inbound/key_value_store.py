"""Key-value store port: the two operations offered to callers.

This inbound port defines the read/write contract and the closed error
taxonomy every implementation reports through.

Error taxonomy:

    StoreError
    ├── EngineFailure      engine fault; the operation had no effect
    └── NotFoundError      expected outcome, not a fault
        ├── KeyMissing     key absent from an existing table
        └── EmptyTable     table never created by a write

Callers distinguish expected outcomes from faults by catching
NotFoundError before EngineFailure.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from kv_store.domain.value_objects import Key, Value


class StoreError(Exception):
    """Base class for every error reported by a key-value store."""


class EngineFailure(StoreError):
    """The storage engine could not complete the transaction.

    Raised with the underlying engine error chained as __cause__, and
    with its description as the message.
    """

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description


class NotFoundError(StoreError):
    """A read found no value for the key. Not a system fault."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


class KeyMissing(NotFoundError):
    """The key is absent from an existing table."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"key not found `{key}`")


class EmptyTable(NotFoundError):
    """The table has never been written, so no key can be present."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"table was empty while getting key `{key}`")


class KeyValueStore(Protocol):
    """Protocol for transactional single-key reads and writes.

    Each call runs exactly one transaction and never retries. Errors are
    reported immediately; the caller decides whether to retry.
    """

    @abstractmethod
    def read(self, key: Key) -> Value:
        """Read the value stored at key.

        Args:
            key: The key to look up.

        Returns:
            The current value.

        Raises:
            EmptyTable: If no write has ever created the table.
            KeyMissing: If the table exists but has no entry for key.
            EngineFailure: If the engine cannot complete the read.
        """
        ...

    @abstractmethod
    def write(self, key: Key, value: Value) -> Value | None:
        """Store value at key and commit.

        Args:
            key: The key to write.
            value: The new value.

        Returns:
            The previous value if key was overwritten, None if it was created.

        Raises:
            EngineFailure: If the engine cannot complete or commit the
                write. The table is left exactly as it was.
        """
        ...
