"""Key-Value Service - process-wide owner of the store.

The KeyValueService is the single owner of the storage engine. It opens
the store at start-up, and exposes read/write through a single-writer /
multiple-reader lock:

- read() holds the lock in SHARED mode for one read transaction
- write() holds the lock in EXCLUSIVE mode for one write transaction,
  commit included

No operation takes the lock more than once. Every operation is logged,
traced and counted.

Usage:
    from kv_store.application import KeyValueService

    with KeyValueService("/var/lib/kv/store.sqlite3", "main") as service:
        service.write(Key("a"), Value("1"))   # -> None
        service.read(Key("a"))                # -> "1"
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from kv_store.adapters.outbound.sqlite_engine import (
    DEFAULT_BUSY_TIMEOUT_SECONDS,
    SyncMode,
    open_or_create,
)
from kv_store.application.access_layer import TransactionalStore
from kv_store.domain.services import ReadWriteLock
from kv_store.domain.value_objects import (
    Key,
    LockMode,
    OperationKind,
    TableName,
    Value,
    WriteStatus,
    create_table_name,
)
from kv_store.infrastructure.logging import get_logger
from kv_store.infrastructure.metrics import MetricsRegistry, get_metrics
from kv_store.infrastructure.tracing import trace_span
from kv_store.ports.inbound.key_value_store import (
    EmptyTable,
    EngineFailure,
    KeyMissing,
)
from kv_store.ports.outbound.storage_engine import StorageEngine

logger = get_logger(__name__)


class KeyValueService:
    """Thread-safe key-value store over a single durable table.

    Implements the KeyValueStore port. Meant to be shared by every
    request handler in the process.

    Thread Safety:
        read() and write() may be called from any number of threads.
        They block, so async callers must run them off the event loop.
    """

    def __init__(
        self,
        path: str | Path,
        table_name: str,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
        synchronous: SyncMode = "FULL",
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the service. The store is opened by start().

        Args:
            path: Database file path.
            table_name: Name of the single table.
            busy_timeout: Seconds to wait for the engine's writer slot.
            synchronous: SQLite synchronous level.
            metrics: Metrics registry (default: global registry).

        Raises:
            ValueError: If table_name is invalid.
        """
        self._path = Path(path)
        self._table_name = create_table_name(table_name)
        self._busy_timeout = busy_timeout
        self._synchronous = synchronous
        self._metrics = metrics or get_metrics()

        self._lock = ReadWriteLock()
        self._engine: StorageEngine | None = None
        self._store: TransactionalStore | None = None

        self._counts_lock = threading.Lock()
        self._counts = {"reads": 0, "writes": 0, "failures": 0}

        self._started = False

    @classmethod
    def from_engine(
        cls,
        engine: StorageEngine,
        metrics: MetricsRegistry | None = None,
    ) -> KeyValueService:
        """Create a started service around an already-open engine."""
        service = cls(engine.path, engine.table_name, metrics=metrics)
        service._attach(engine)
        return service

    @property
    def path(self) -> Path:
        return self._path

    @property
    def table_name(self) -> TableName:
        return self._table_name

    @property
    def is_started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Open (or create) the store.

        Raises:
            RuntimeError: If already started.
            StoreOpenError: If the store can be neither opened nor created.
        """
        if self._started:
            raise RuntimeError("Key-value service already started")

        engine = open_or_create(
            self._path,
            self._table_name,
            busy_timeout=self._busy_timeout,
            synchronous=self._synchronous,
        )
        self._attach(engine)

    def _attach(self, engine: StorageEngine) -> None:
        self._engine = engine
        self._store = TransactionalStore(engine)
        self._started = True
        logger.info("service_started", path=str(self._path), table=self._table_name)

    def stop(self) -> None:
        """Close the store.

        Waits for in-flight operations by taking the lock exclusively.

        Raises:
            RuntimeError: If not started.
        """
        if not self._started:
            raise RuntimeError("Key-value service not started")

        with self._lock.exclusive():
            if self._engine is not None:
                self._engine.close()
            self._engine = None
            self._store = None
            self._started = False

        logger.info("service_stopped", path=str(self._path))

    def read(self, key: Key) -> Value:
        """Read key under a shared lock.

        Raises:
            RuntimeError: If not started.
            EmptyTable: If the table has never been written.
            KeyMissing: If key is absent.
            EngineFailure: If the engine fails.
        """
        with trace_span("kv.read", {"kv.key": key, "kv.table": self._table_name}):
            started = time.perf_counter()
            try:
                with self._hold(LockMode.for_operation(OperationKind.READ)):
                    value = self._require_store().read(key)
            except (KeyMissing, EmptyTable) as e:
                outcome = "empty_table" if isinstance(e, EmptyTable) else "missing"
                logger.debug("key_not_found", key=key, outcome=outcome)
                self._record(OperationKind.READ, outcome, started)
                raise
            except EngineFailure as e:
                logger.error("read_failed", key=key, error=e.description)
                self._record(OperationKind.READ, "failure", started)
                raise

            self._record(OperationKind.READ, "found", started)
            return value

    def write(self, key: Key, value: Value) -> Value | None:
        """Write key under an exclusive lock and commit.

        Returns:
            The previous value if key was overwritten, None if created.

        Raises:
            RuntimeError: If not started.
            EngineFailure: If the engine fails; nothing was changed.
        """
        with trace_span("kv.write", {"kv.key": key, "kv.table": self._table_name}):
            started = time.perf_counter()
            try:
                with self._hold(LockMode.for_operation(OperationKind.WRITE)):
                    previous = self._require_store().write(key, value)
            except EngineFailure as e:
                logger.error("write_failed", key=key, error=e.description)
                self._record(OperationKind.WRITE, "failure", started)
                raise

            status = WriteStatus.from_previous(previous)
            outcome = "created" if status is WriteStatus.SUCCESS_NEW else "overwritten"
            logger.debug("key_written", key=key, outcome=outcome)
            self._record(OperationKind.WRITE, outcome, started)
            return previous

    @contextmanager
    def _hold(self, mode: LockMode) -> Iterator[None]:
        wait_started = time.perf_counter()
        with self._lock.locked(mode):
            self._metrics.lock_wait_seconds.labels(mode=mode.value).observe(
                time.perf_counter() - wait_started
            )
            yield

    def _require_store(self) -> TransactionalStore:
        if self._store is None:
            raise RuntimeError("Key-value service not started")
        return self._store

    def _record(self, operation: OperationKind, outcome: str, started: float) -> None:
        elapsed = time.perf_counter() - started
        self._metrics.operations_total.labels(
            operation=operation.value, outcome=outcome
        ).inc()
        self._metrics.operation_latency_seconds.labels(operation=operation.value).observe(elapsed)

        with self._counts_lock:
            if outcome == "failure":
                self._counts["failures"] += 1
            elif operation is OperationKind.READ:
                self._counts["reads"] += 1
            else:
                self._counts["writes"] += 1

    def get_stats(self) -> dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with state and per-operation counts.
        """
        with self._counts_lock:
            counts = dict(self._counts)

        return {
            "started": self._started,
            "path": str(self._path),
            "table_name": self._table_name,
            **counts,
        }

    def __enter__(self) -> KeyValueService:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()

