"""Core identifiers and type-safe primitives for the key-value store.

Keys and values are opaque text. The table name is an ordinary runtime
value captured once when the store is opened.
"""

from __future__ import annotations

from typing import NewType


Key = NewType("Key", str)
"""Record key. Unique within the table."""

Value = NewType("Value", str)
"""Record value. Opaque text, never interpreted by the store."""

TableName = NewType("TableName", str)
"""Name of the single table held by a store."""

MAX_TABLE_NAME_LENGTH = 128
RESERVED_TABLE_PREFIX = "sqlite_"


def create_table_name(name: str) -> TableName:
    """Validate and wrap a table name.

    Args:
        name: Raw table name from configuration.

    Returns:
        The validated TableName.

    Raises:
        ValueError: If the name is empty, too long, contains a NUL byte,
            or uses the engine's reserved prefix.
    """
    if not name:
        raise ValueError("table name must not be empty")
    if len(name) > MAX_TABLE_NAME_LENGTH:
        raise ValueError(
            f"table name must be at most {MAX_TABLE_NAME_LENGTH} characters, got {len(name)}"
        )
    if "\x00" in name:
        raise ValueError("table name must not contain NUL bytes")
    if name.lower().startswith(RESERVED_TABLE_PREFIX):
        raise ValueError(f"table name must not start with {RESERVED_TABLE_PREFIX!r}")
    return TableName(name)
