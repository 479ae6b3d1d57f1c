"""Transactional Access Layer.

Executes exactly one logical read or write against a storage engine, in
its own transaction, and reports the outcome through the KeyValueStore
error taxonomy:

    engine outcome                       -> access layer result
    ---------------------------------------------------------------
    value found                          -> value returned
    key absent                           -> KeyMissing(key)
    table never created                  -> EmptyTable(key)
    insert into absent key, committed    -> None
    insert over existing key, committed  -> previous value
    any EngineError                      -> EngineFailure(description)

The access layer holds no lock itself; callers serialize writes (see
KeyValueService). It never retains a transaction across calls and never
retries.
"""

from __future__ import annotations

from kv_store.domain.value_objects import Key, Value
from kv_store.ports.inbound.key_value_store import EmptyTable, EngineFailure, KeyMissing
from kv_store.ports.outbound.storage_engine import (
    EngineError,
    StorageEngine,
    TableDoesNotExistError,
)


class TransactionalStore:
    """KeyValueStore implementation over a StorageEngine.

    Thread Safety:
        Safe for concurrent reads. Concurrent writes are safe as far as
        the engine's own single-writer slot goes, but callers are
        expected to hold an exclusive lock around write().
    """

    def __init__(self, engine: StorageEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> StorageEngine:
        return self._engine

    def read(self, key: Key) -> Value:
        """Read the value stored at key in a snapshot transaction.

        Raises:
            EmptyTable: If the table has never been written.
            KeyMissing: If key is absent from the table.
            EngineFailure: If the engine fails.
        """
        try:
            txn = self._engine.begin_read()
        except EngineError as e:
            raise EngineFailure(str(e)) from e

        with txn:
            try:
                table = txn.open_table()
            except TableDoesNotExistError:
                raise EmptyTable(key) from None
            except EngineError as e:
                raise EngineFailure(str(e)) from e

            try:
                value = table.get(key)
            except EngineError as e:
                raise EngineFailure(str(e)) from e

        if value is None:
            raise KeyMissing(key)
        return Value(value)

    def write(self, key: Key, value: Value) -> Value | None:
        """Insert or overwrite key and commit.

        Returns:
            The previous value if key existed, else None.

        Raises:
            EngineFailure: If the engine fails at any step. The
                transaction is aborted and the table is unchanged.
        """
        try:
            txn = self._engine.begin_write()
        except EngineError as e:
            raise EngineFailure(str(e)) from e

        # Leaving the block without commit() aborts the transaction.
        with txn:
            try:
                table = txn.open_table()
                previous = table.insert(key, value)
                txn.commit()
            except EngineError as e:
                raise EngineFailure(str(e)) from e

        return None if previous is None else Value(previous)
