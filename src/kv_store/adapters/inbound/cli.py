"""Command-line entry point: open the store and serve it over HTTP.

Usage:
    kv-store [--table-name NAME] [--port PORT] [--db-file-name PATH]
             [--host HOST] [--log-level LEVEL] [--log-format FORMAT] TOKEN

Options not given on the command line fall back to KV_STORE_* environment
variables (see infrastructure.config), then to the built-in defaults.
The token may come from KV_STORE_SERVER__TOKEN instead of the argument.

uvicorn handles SIGINT and SIGTERM: in-flight requests finish, then the
store is closed.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

import uvicorn

from kv_store.adapters.inbound.rest_api import create_app
from kv_store.application import KeyValueService
from kv_store.infrastructure.config import (
    Config,
    ObservabilityConfig,
    ServerConfig,
    StorageConfig,
)
from kv_store.infrastructure.logging import get_logger, setup_logging
from kv_store.infrastructure.metrics import setup_metrics
from kv_store.infrastructure.tracing import setup_tracing
from kv_store.ports.outbound.storage_engine import StoreOpenError

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Every option defaults to None (unset)."""
    parser = argparse.ArgumentParser(
        prog="kv-store",
        description="Serve a single-table durable key-value store over HTTP.",
    )
    parser.add_argument("--table-name", help="name of the table (default: main)")
    parser.add_argument("--port", type=int, help="HTTP port (default: 9958)")
    parser.add_argument(
        "--db-file-name", help="path of the database file (default: kv_store.sqlite3)"
    )
    parser.add_argument("--host", help="address to bind (default: 0.0.0.0)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="log level (default: INFO)",
    )
    parser.add_argument("--log-format", choices=["json", "console"], help="log format")
    parser.add_argument("token", nargs="?", help="bearer token clients must present")
    return parser


def _merge(model: Any, **overrides: Any) -> Any:
    """Rebuild a config section with the non-None overrides applied."""
    updates = {name: value for name, value in overrides.items() if value is not None}
    if not updates:
        return model
    return type(model)(**{**model.model_dump(), **updates})


def resolve_config(args: argparse.Namespace, base: Config | None = None) -> Config:
    """Layer command-line arguments over environment configuration.

    Raises:
        pydantic.ValidationError: If a merged value is invalid.
    """
    config = base or Config()
    storage: StorageConfig = _merge(
        config.storage, path=args.db_file_name, table_name=args.table_name
    )
    server: ServerConfig = _merge(config.server, host=args.host, port=args.port, token=args.token)
    observability: ObservabilityConfig = _merge(
        config.observability, log_level=args.log_level, log_format=args.log_format
    )
    return Config(storage=storage, server=server, observability=observability)


def serve(config: Config) -> int:
    """Open the store and run the HTTP server until shutdown.

    Returns:
        Process exit status.
    """
    obs = config.observability
    if obs.otel_endpoint:
        setup_tracing(service_name=obs.otel_service_name, otlp_endpoint=obs.otel_endpoint)
    if obs.metrics_enabled:
        setup_metrics(port=obs.metrics_port)

    config.ensure_directories()
    service = KeyValueService(
        config.storage.path,
        config.storage.table_name,
        busy_timeout=config.storage.busy_timeout_seconds,
        synchronous=config.storage.synchronous,
    )
    try:
        service.start()
    except StoreOpenError as e:
        logger.error("store_open_failed", path=str(config.storage.path), error=str(e))
        return 1

    try:
        app = create_app(
            service,
            token=config.server.token.get_secret_value(),
            gzip_minimum_size=config.server.gzip_minimum_size,
        )
        logger.info("server_starting", host=config.server.host, port=config.server.port)
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_config=None,
            log_level=obs.log_level.lower(),
        )
        logger.info("graceful_shutdown_complete")
    finally:
        service.stop()

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, configure logging, and serve."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = resolve_config(args)
    if not config.server.token.get_secret_value():
        parser.error("a bearer token is required (argument or KV_STORE_SERVER__TOKEN)")

    setup_logging(
        level=config.observability.log_level,
        log_format=config.observability.log_format,
    )
    return serve(config)
