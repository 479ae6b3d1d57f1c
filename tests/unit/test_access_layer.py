"""Unit tests for the transactional access layer."""

from __future__ import annotations

from pathlib import Path

import pytest

from kv_store.application import TransactionalStore
from kv_store.domain.value_objects import Key, TableName, Value
from kv_store.ports.inbound.key_value_store import (
    EmptyTable,
    EngineFailure,
    KeyMissing,
    NotFoundError,
    StoreError,
)
from kv_store.ports.outbound.storage_engine import EngineError, TableDoesNotExistError


class FaultyEngine:
    """In-memory engine that fails at a chosen step.

    fail_at is one of: begin_read, open_read, get, begin_write,
    open_write, insert, commit.
    """

    def __init__(self, fail_at: str | None = None, table_exists: bool = True) -> None:
        self.fail_at = fail_at
        self.table_exists = table_exists
        self.data: dict[str, str] = {}
        self.aborted = 0
        self.closed_reads = 0

    @property
    def path(self) -> Path:
        return Path("memory")

    @property
    def table_name(self) -> TableName:
        return TableName("main")

    def _maybe_fail(self, step: str) -> None:
        if self.fail_at == step:
            raise EngineError(f"injected failure at {step}")

    def begin_read(self) -> "FaultyEngine._Read":
        self._maybe_fail("begin_read")
        return FaultyEngine._Read(self)

    def begin_write(self) -> "FaultyEngine._Write":
        self._maybe_fail("begin_write")
        return FaultyEngine._Write(self)

    def close(self) -> None:
        pass

    class _Read:
        def __init__(self, engine: FaultyEngine) -> None:
            self._engine = engine

        def open_table(self):
            self._engine._maybe_fail("open_read")
            if not self._engine.table_exists:
                raise TableDoesNotExistError("main")
            return self

        def get(self, key: str) -> str | None:
            self._engine._maybe_fail("get")
            return self._engine.data.get(key)

        def close(self) -> None:
            self._engine.closed_reads += 1

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb) -> None:
            self.close()

    class _Write:
        def __init__(self, engine: FaultyEngine) -> None:
            self._engine = engine
            self._pending: dict[str, str] = {}
            self._done = False

        def open_table(self):
            self._engine._maybe_fail("open_write")
            return self

        def insert(self, key: str, value: str) -> str | None:
            self._engine._maybe_fail("insert")
            previous = self._pending.get(key, self._engine.data.get(key))
            self._pending[key] = value
            return previous

        def commit(self) -> None:
            self._engine._maybe_fail("commit")
            self._engine.data.update(self._pending)
            self._engine.table_exists = True
            self._done = True

        def abort(self) -> None:
            if not self._done:
                self._done = True
                self._engine.aborted += 1

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb) -> None:
            self.abort()


@pytest.mark.unit
class TestAccessLayerOverSqlite:
    """Behaviour against the real SQLite engine."""

    def test_scenario(self, access_layer: TransactionalStore) -> None:
        assert access_layer.write(Key("a"), Value("1")) is None
        assert access_layer.read(Key("a")) == "1"
        assert access_layer.write(Key("a"), Value("2")) == "1"
        assert access_layer.read(Key("a")) == "2"

        with pytest.raises(KeyMissing) as exc_info:
            access_layer.read(Key("b"))
        assert exc_info.value.key == "b"

    def test_fresh_store_reports_empty_table(self, access_layer: TransactionalStore) -> None:
        with pytest.raises(EmptyTable) as exc_info:
            access_layer.read(Key("anything"))
        assert exc_info.value.key == "anything"

    def test_missing_and_empty_are_not_found(self, access_layer: TransactionalStore) -> None:
        with pytest.raises(NotFoundError):
            access_layer.read(Key("x"))
        access_layer.write(Key("y"), Value("1"))
        with pytest.raises(NotFoundError):
            access_layer.read(Key("x"))

    def test_repeated_reads_are_identical(self, access_layer: TransactionalStore) -> None:
        access_layer.write(Key("k"), Value("v"))
        assert {access_layer.read(Key("k")) for _ in range(5)} == {"v"}

    def test_empty_value_round_trips(self, access_layer: TransactionalStore) -> None:
        assert access_layer.write(Key("k"), Value("")) is None
        assert access_layer.read(Key("k")) == ""
        assert access_layer.write(Key("k"), Value("x")) == ""


@pytest.mark.unit
class TestAccessLayerFailures:
    """Engine failures surface as EngineFailure and leave no effect."""

    @pytest.mark.parametrize("step", ["begin_read", "open_read", "get"])
    def test_read_failures(self, step: str) -> None:
        engine = FaultyEngine(fail_at=step)
        engine.data["k"] = "v"
        store = TransactionalStore(engine)

        with pytest.raises(EngineFailure) as exc_info:
            store.read(Key("k"))

        assert f"injected failure at {step}" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, EngineError)

    def test_read_transaction_released_on_failure(self) -> None:
        engine = FaultyEngine(fail_at="get")
        store = TransactionalStore(engine)

        with pytest.raises(EngineFailure):
            store.read(Key("k"))

        assert engine.closed_reads == 1

    def test_missing_table_is_not_a_failure(self) -> None:
        store = TransactionalStore(FaultyEngine(table_exists=False))

        with pytest.raises(EmptyTable):
            store.read(Key("k"))

    @pytest.mark.parametrize("step", ["begin_write", "open_write", "insert", "commit"])
    def test_write_failures_have_no_effect(self, step: str) -> None:
        engine = FaultyEngine(fail_at=step)
        engine.data["k"] = "before"
        store = TransactionalStore(engine)

        with pytest.raises(EngineFailure) as exc_info:
            store.write(Key("k"), Value("after"))

        assert isinstance(exc_info.value, StoreError)
        assert exc_info.value.description == f"injected failure at {step}"
        assert engine.data == {"k": "before"}
        if step != "begin_write":
            assert engine.aborted == 1

    def test_successful_write_is_not_aborted(self) -> None:
        engine = FaultyEngine()
        store = TransactionalStore(engine)

        assert store.write(Key("k"), Value("v")) is None

        assert engine.data == {"k": "v"}
        assert engine.aborted == 0
