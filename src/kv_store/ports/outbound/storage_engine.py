"""Storage Engine port for durable transactional tables.

This outbound port defines the contract the access layer needs from the
durable storage engine: a file-backed database holding one named table,
with snapshot read transactions and single-writer write transactions.

The engine is responsible for:
- Opening an existing database file or creating a new one
- Beginning read and write transactions
- Creating the table lazily on the first write
- Making committed writes durable and discarding uncommitted ones

Transaction lifecycle:

    begin_read() ──> open_table() ──> get() ──> close()

    begin_write() ──> open_table() ──> insert() ──> commit()
                                           │
                                           └──(error)──> abort()
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol

from kv_store.domain.value_objects import TableName


class EngineError(Exception):
    """Any failure reported by the storage engine.

    The message carries the engine's own description of the failure.
    """


class TableDoesNotExistError(EngineError):
    """Raised when a read transaction opens a table that was never created."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"table {table_name!r} does not exist")
        self.table_name = table_name


class StoreOpenError(EngineError):
    """Raised when a store file can be neither opened nor created.

    This is a startup precondition; the process cannot serve requests
    without a store.
    """


class ReadOnlyTable(Protocol):
    """A table opened inside a read transaction."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored at key, or None if absent.

        Raises:
            EngineError: If the lookup fails.
        """
        ...


class WritableTable(Protocol):
    """A table opened inside a write transaction."""

    @abstractmethod
    def insert(self, key: str, value: str) -> str | None:
        """Store value at key.

        Returns:
            The value previously stored at key, or None if the key was new.

        Raises:
            EngineError: If the insert fails.
        """
        ...


class ReadTransaction(Protocol):
    """A snapshot read transaction.

    The snapshot is fixed when the transaction begins: writes committed
    afterwards are not visible through it. Read transactions never
    mutate and need no commit; close() releases them.
    """

    @abstractmethod
    def open_table(self) -> ReadOnlyTable:
        """Open the store's table for reading.

        Raises:
            TableDoesNotExistError: If no write has ever created the table.
            EngineError: For any other engine failure.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the transaction and its snapshot."""
        ...

    def __enter__(self) -> ReadTransaction:
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class WriteTransaction(Protocol):
    """A write transaction holding the engine's single writer slot.

    Changes become durable and visible only after commit(). Exiting the
    context manager without committing aborts the transaction.
    """

    @abstractmethod
    def open_table(self) -> WritableTable:
        """Open the store's table for writing, creating it if necessary.

        Raises:
            EngineError: If the table cannot be opened or created.
        """
        ...

    @abstractmethod
    def commit(self) -> None:
        """Make all changes durable.

        Raises:
            EngineError: If the commit fails. The changes are discarded.
        """
        ...

    @abstractmethod
    def abort(self) -> None:
        """Discard all changes made in this transaction."""
        ...

    def __enter__(self) -> WriteTransaction:
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class StorageEngine(Protocol):
    """Protocol for the durable store handle.

    A storage engine owns one database file and one table definition.
    The table name is captured when the engine is opened and reused for
    every transaction.

    Thread Safety:
        begin_read() and begin_write() may be called from any thread.
        Each transaction object must stay on the thread that began it.
    """

    @property
    @abstractmethod
    def path(self) -> Path:
        """Location of the database file."""
        ...

    @property
    @abstractmethod
    def table_name(self) -> TableName:
        """Name of the single table in this store."""
        ...

    @abstractmethod
    def begin_read(self) -> ReadTransaction:
        """Begin a snapshot read transaction.

        Raises:
            EngineError: If the engine cannot begin a read (e.g. I/O error).
        """
        ...

    @abstractmethod
    def begin_write(self) -> WriteTransaction:
        """Begin a write transaction.

        Raises:
            EngineError: If the writer slot cannot be acquired or an I/O
                error occurs.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release engine resources. The engine must not be used afterwards."""
        ...
