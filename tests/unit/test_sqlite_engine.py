"""Unit tests for the SQLite storage engine adapter."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from kv_store.adapters.outbound.sqlite_engine import SqliteStore, open_or_create
from kv_store.ports.outbound.storage_engine import (
    EngineError,
    StoreOpenError,
    TableDoesNotExistError,
)


def _write(store: SqliteStore, key: str, value: str) -> str | None:
    with store.begin_write() as txn:
        previous = txn.open_table().insert(key, value)
        txn.commit()
    return previous


def _read(store: SqliteStore, key: str) -> str | None:
    with store.begin_read() as txn:
        return txn.open_table().get(key)


@pytest.mark.unit
class TestOpenOrCreate:
    """Tests for opening and creating store files."""

    def test_creates_missing_file_and_parents(self, db_path: Path) -> None:
        assert not db_path.exists()

        store = open_or_create(db_path, "main")

        assert db_path.exists()
        assert store.path == db_path
        assert store.table_name == "main"

    def test_uses_wal_journal(self, db_path: Path) -> None:
        open_or_create(db_path, "main")

        conn = sqlite3.connect(db_path)
        try:
            mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        finally:
            conn.close()
        assert mode.lower() == "wal"

    def test_reopens_existing_file(self, db_path: Path) -> None:
        first = open_or_create(db_path, "main")
        _write(first, "k", "v")
        first.close()

        second = open_or_create(db_path, "main")

        assert _read(second, "k") == "v"

    def test_corrupt_file_is_fatal(self, temp_dir: Path) -> None:
        path = temp_dir / "corrupt.sqlite3"
        path.write_bytes(b"this is definitely not a sqlite database" * 100)

        with pytest.raises(StoreOpenError):
            open_or_create(path, "main")

    def test_directory_path_is_fatal(self, temp_dir: Path) -> None:
        with pytest.raises(StoreOpenError):
            open_or_create(temp_dir, "main")

    def test_invalid_table_name(self, db_path: Path) -> None:
        with pytest.raises(ValueError):
            open_or_create(db_path, "")


@pytest.mark.unit
class TestTransactions:
    """Tests for read and write transactions."""

    def test_read_before_any_write_has_no_table(self, engine: SqliteStore) -> None:
        with engine.begin_read() as txn:
            with pytest.raises(TableDoesNotExistError):
                txn.open_table()

    def test_insert_returns_previous(self, engine: SqliteStore) -> None:
        assert _write(engine, "a", "1") is None
        assert _write(engine, "a", "2") == "1"
        assert _read(engine, "a") == "2"

    def test_get_missing_key(self, engine: SqliteStore) -> None:
        _write(engine, "a", "1")
        assert _read(engine, "b") is None

    def test_uncommitted_write_is_discarded(self, engine: SqliteStore) -> None:
        _write(engine, "a", "1")

        with engine.begin_write() as txn:
            txn.open_table().insert("a", "2")
            txn.open_table().insert("b", "3")
            # No commit: leaving the block aborts.

        assert _read(engine, "a") == "1"
        assert _read(engine, "b") is None

    def test_explicit_abort(self, engine: SqliteStore) -> None:
        txn = engine.begin_write()
        txn.open_table().insert("a", "1")
        txn.abort()

        with engine.begin_read() as read_txn:
            with pytest.raises(TableDoesNotExistError):
                read_txn.open_table()

    def test_aborted_first_write_does_not_create_table(self, engine: SqliteStore) -> None:
        with engine.begin_write() as txn:
            txn.open_table()

        with engine.begin_read() as read_txn:
            with pytest.raises(TableDoesNotExistError):
                read_txn.open_table()

    def test_commit_twice_fails(self, engine: SqliteStore) -> None:
        txn = engine.begin_write()
        txn.open_table().insert("a", "1")
        txn.commit()

        with pytest.raises(EngineError):
            txn.commit()

    def test_read_snapshot_ignores_later_commit(self, engine: SqliteStore) -> None:
        _write(engine, "a", "old")

        with engine.begin_read() as txn:
            table = txn.open_table()
            _write(engine, "a", "new")
            assert table.get("a") == "old"

        assert _read(engine, "a") == "new"

    def test_second_writer_times_out(self, db_path: Path) -> None:
        store = open_or_create(db_path, "main", busy_timeout=0.05)
        holder = store.begin_write()
        try:
            with pytest.raises(EngineError):
                store.begin_write()
        finally:
            holder.abort()

    def test_table_name_is_quoted(self, db_path: Path) -> None:
        store = open_or_create(db_path, 'odd "name"; DROP TABLE x')
        _write(store, "k", "v")
        assert _read(store, "k") == "v"

    def test_closed_store_refuses_transactions(self, engine: SqliteStore) -> None:
        engine.close()

        with pytest.raises(EngineError):
            engine.begin_read()
        with pytest.raises(EngineError):
            engine.begin_write()

    def test_text_is_preserved(self, engine: SqliteStore) -> None:
        value = "ünïcødé ✓\nline two\x01"
        _write(engine, "ключ", value)
        assert _read(engine, "ключ") == value
