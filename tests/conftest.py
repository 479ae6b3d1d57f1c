"""Pytest configuration and fixtures for kv_store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from kv_store.adapters.outbound.sqlite_engine import SqliteStore, open_or_create
from kv_store.application import KeyValueService, TransactionalStore
from kv_store.infrastructure.config import Config, ServerConfig, StorageConfig
from kv_store.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path of a store file that does not exist yet."""
    return temp_dir / "data" / "store.sqlite3"


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with a temporary store path."""
    return Config(
        storage=StorageConfig(
            path=temp_dir / "data" / "store.sqlite3",
            table_name="main",
            busy_timeout_seconds=1.0,
            synchronous="OFF",  # Faster for tests
        ),
        server=ServerConfig(token="test-token"),
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def engine(db_path: Path) -> Generator[SqliteStore, None, None]:
    """A freshly created SQLite store with table 'main'."""
    store = open_or_create(db_path, "main", synchronous="OFF")
    yield store
    store.close()


@pytest.fixture
def access_layer(engine: SqliteStore) -> TransactionalStore:
    """Access layer over the fresh store."""
    return TransactionalStore(engine)


@pytest.fixture
def service(
    db_path: Path, metrics_registry: MetricsRegistry
) -> Generator[KeyValueService, None, None]:
    """A started key-value service over a fresh store."""
    svc = KeyValueService(db_path, "main", synchronous="OFF", metrics=metrics_registry)
    svc.start()
    yield svc
    if svc.is_started:
        svc.stop()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
