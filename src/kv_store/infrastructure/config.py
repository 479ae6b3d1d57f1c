"""Configuration management for the key-value store."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kv_store.domain.value_objects import create_table_name


class StorageConfig(BaseModel):
    """Storage configuration."""

    path: Path = Field(default=Path("kv_store.sqlite3"), description="Database file path")
    table_name: str = Field(default="main", description="Name of the single table")
    busy_timeout_seconds: float = Field(
        default=5.0, ge=0.0, description="Seconds to wait for the engine's writer slot"
    )
    synchronous: Literal["FULL", "NORMAL", "OFF"] = Field(
        default="FULL", description="SQLite synchronous level"
    )

    @field_validator("table_name")
    @classmethod
    def _validate_table_name(cls, value: str) -> str:
        return create_table_name(value)


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=9958, ge=1, le=65535, description="Server port")
    token: SecretStr = Field(default=SecretStr(""), description="Bearer token clients must send")
    gzip_minimum_size: int = Field(
        default=500, ge=0, description="Smallest response body (bytes) to gzip"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    metrics_enabled: bool = Field(default=False, description="Serve Prometheus metrics")
    metrics_port: int = Field(default=9959, ge=1, le=65535, description="Prometheus metrics port")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="kv_store", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the key-value store."""

    model_config = SettingsConfigDict(
        env_prefix="KV_STORE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure the directory holding the database file exists."""
        self.storage.path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    config = Config()
    config.ensure_directories()
    return config
