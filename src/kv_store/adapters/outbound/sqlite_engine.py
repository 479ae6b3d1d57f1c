"""SQLite-backed Storage Engine implementation.

This adapter implements the StorageEngine protocol on a single SQLite
database file in WAL journal mode. WAL gives exactly the transaction
model the store needs:

- Read transactions see a snapshot fixed at begin and never block, even
  while a write is in progress.
- Write transactions take SQLite's single writer slot (BEGIN IMMEDIATE)
  and become durable and visible only on COMMIT.

File Format:
    One SQLite database holding one table named as configured:

        CREATE TABLE "<table_name>" (
            key   TEXT PRIMARY KEY NOT NULL,
            value TEXT NOT NULL
        ) WITHOUT ROWID

    WAL side files (<path>-wal, <path>-shm) live beside the database.

Thread Safety:
    Every transaction opens its own connection and closes it when the
    transaction ends, so no connection is shared between threads.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Literal

from kv_store.domain.value_objects import TableName, create_table_name
from kv_store.infrastructure.logging import get_logger
from kv_store.ports.outbound.storage_engine import (
    EngineError,
    StoreOpenError,
    TableDoesNotExistError,
)

logger = get_logger(__name__)

SyncMode = Literal["FULL", "NORMAL", "OFF"]

DEFAULT_BUSY_TIMEOUT_SECONDS = 5.0

_SCHEMA_PROBE = "SELECT count(*) FROM sqlite_master"
_TABLE_EXISTS = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ? COLLATE NOCASE"


def _quote_identifier(name: str) -> str:
    """Quote a table name for use in SQL text."""
    return '"' + name.replace('"', '""') + '"'


def _safe_close(conn: sqlite3.Connection) -> None:
    try:
        conn.close()
    except sqlite3.Error as e:
        logger.warning("connection_close_failed", error=str(e))


class SqliteReadOnlyTable:
    """Table view inside a read transaction."""

    def __init__(self, conn: sqlite3.Connection, quoted_name: str) -> None:
        self._conn = conn
        self._select = f"SELECT value FROM {quoted_name} WHERE key = ?"

    def get(self, key: str) -> str | None:
        try:
            row = self._conn.execute(self._select, (key,)).fetchone()
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        return None if row is None else row[0]


class SqliteWritableTable:
    """Table view inside a write transaction."""

    def __init__(self, conn: sqlite3.Connection, quoted_name: str) -> None:
        self._conn = conn
        self._select = f"SELECT value FROM {quoted_name} WHERE key = ?"
        self._upsert = (
            f"INSERT INTO {quoted_name} (key, value) VALUES (?, ?) "
            "ON CONFLICT (key) DO UPDATE SET value = excluded.value"
        )

    def insert(self, key: str, value: str) -> str | None:
        try:
            row = self._conn.execute(self._select, (key,)).fetchone()
            self._conn.execute(self._upsert, (key, value))
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        return None if row is None else row[0]


class SqliteReadTransaction:
    """Snapshot read transaction on its own connection."""

    def __init__(self, conn: sqlite3.Connection, table_name: TableName) -> None:
        self._conn = conn
        self._table_name = table_name
        self._closed = False

    def open_table(self) -> SqliteReadOnlyTable:
        if self._closed:
            raise EngineError("read transaction is closed")
        try:
            row = self._conn.execute(_TABLE_EXISTS, (self._table_name,)).fetchone()
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        if row is None:
            raise TableDoesNotExistError(self._table_name)
        return SqliteReadOnlyTable(self._conn, _quote_identifier(self._table_name))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.warning("read_release_failed", error=str(e))
        finally:
            _safe_close(self._conn)

    def __enter__(self) -> SqliteReadTransaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SqliteWriteTransaction:
    """Write transaction holding SQLite's writer slot on its own connection."""

    def __init__(self, conn: sqlite3.Connection, table_name: TableName) -> None:
        self._conn = conn
        self._table_name = table_name
        self._finished = False

    @property
    def is_finished(self) -> bool:
        """Whether the transaction has been committed or aborted."""
        return self._finished

    def open_table(self) -> SqliteWritableTable:
        if self._finished:
            raise EngineError("write transaction is finished")
        quoted = _quote_identifier(self._table_name)
        try:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {quoted} ("
                "key TEXT PRIMARY KEY NOT NULL, "
                "value TEXT NOT NULL"
                ") WITHOUT ROWID"
            )
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        return SqliteWritableTable(self._conn, quoted)

    def commit(self) -> None:
        if self._finished:
            raise EngineError("write transaction is finished")
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            self.abort()
            raise EngineError(str(e)) from e
        self._finished = True
        _safe_close(self._conn)

    def abort(self) -> None:
        if self._finished:
            return
        self._finished = True
        try:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            # Closing the connection discards the uncommitted changes anyway.
            logger.warning("write_abort_failed", error=str(e))
        finally:
            _safe_close(self._conn)

    def __enter__(self) -> SqliteWriteTransaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.abort()


class SqliteStore:
    """SQLite implementation of the StorageEngine protocol.

    Use open_or_create() rather than constructing directly.

    Attributes:
        path: Location of the database file.
        table_name: Name of the single table in this store.
    """

    def __init__(
        self,
        path: str | Path,
        table_name: str,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
        synchronous: SyncMode = "FULL",
    ) -> None:
        """Initialize a handle on an already-prepared database file.

        Args:
            path: Database file path.
            table_name: Name of the table (validated).
            busy_timeout: Seconds to wait for the writer slot when another
                process holds it.
            synchronous: SQLite synchronous level for every connection.

        Raises:
            ValueError: If table_name is invalid.
        """
        self._path = Path(path)
        self._table_name = create_table_name(table_name)
        self._busy_timeout = busy_timeout
        self._synchronous = synchronous
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def table_name(self) -> TableName:
        return self._table_name

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _connect(self, mode: str = "rw") -> sqlite3.Connection:
        uri = f"{self._path.resolve().as_uri()}?mode={mode}"
        conn = sqlite3.connect(
            uri,
            uri=True,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        try:
            conn.execute(f"PRAGMA synchronous={self._synchronous}")
        except sqlite3.Error:
            _safe_close(conn)
            raise
        return conn

    def _prepare(self, create: bool) -> None:
        """Open (or create) the file and switch it to WAL mode."""
        if create:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect("rwc" if create else "rw")
        try:
            conn.execute("PRAGMA journal_mode=WAL").fetchone()
            conn.execute(_SCHEMA_PROBE).fetchone()
        finally:
            _safe_close(conn)

    def begin_read(self) -> SqliteReadTransaction:
        if self._closed:
            raise EngineError("store is closed")
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        try:
            conn.execute("BEGIN")
            # The WAL snapshot is taken on the first read, not at BEGIN.
            conn.execute(_SCHEMA_PROBE).fetchone()
        except sqlite3.Error as e:
            _safe_close(conn)
            raise EngineError(str(e)) from e
        return SqliteReadTransaction(conn, self._table_name)

    def begin_write(self) -> SqliteWriteTransaction:
        if self._closed:
            raise EngineError("store is closed")
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise EngineError(str(e)) from e
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            _safe_close(conn)
            raise EngineError(str(e)) from e
        return SqliteWriteTransaction(conn, self._table_name)

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        return f"SqliteStore(path={str(self._path)!r}, table_name={self._table_name!r})"


def open_or_create(
    path: str | Path,
    table_name: str,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    synchronous: SyncMode = "FULL",
) -> SqliteStore:
    """Open the store at path, creating a new database file if needed.

    The caller does not have to know whether the file exists: an absent
    or unreadable file is replaced by a freshly created database. A file
    that exists but is not a valid database cannot be created over and
    fails.

    Args:
        path: Database file path.
        table_name: Name of the single table.
        busy_timeout: Seconds to wait for the writer slot.
        synchronous: SQLite synchronous level (FULL, NORMAL or OFF).

    Returns:
        A ready-to-use store.

    Raises:
        ValueError: If table_name is invalid.
        StoreOpenError: If the database can be neither opened nor created.
    """
    store = SqliteStore(path, table_name, busy_timeout=busy_timeout, synchronous=synchronous)

    try:
        store._prepare(create=False)
        logger.info("store_opened", path=str(store.path), table=store.table_name)
        return store
    except sqlite3.Error as e:
        logger.info("store_open_failed_creating", path=str(store.path), error=str(e))

    try:
        store._prepare(create=True)
    except (sqlite3.Error, OSError) as e:
        raise StoreOpenError(f"cannot create store at {store.path}: {e}") from e

    logger.info("store_created", path=str(store.path), table=store.table_name)
    return store
