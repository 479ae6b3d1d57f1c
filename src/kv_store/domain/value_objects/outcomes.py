"""Operation outcome vocabularies.

Reads and writes report through two independent status enums so that a
serialized status always says which kind of operation produced it.
"""

from __future__ import annotations

from enum import Enum


class ReadStatus(str, Enum):
    """Outcome of a read operation."""

    FOUND = "Found"
    """The key exists and its value was returned."""

    MISSING = "Missing"
    """The key is absent, or the table has never been written."""

    FAILURE = "Failure"
    """The storage engine could not complete the read."""


class WriteStatus(str, Enum):
    """Outcome of a write operation."""

    SUCCESS_NEW = "SuccessNew"
    """The key did not exist and was created."""

    SUCCESS_OVERWRITE = "SuccessOverwrite"
    """The key existed and its value was replaced."""

    FAILURE = "Failure"
    """The storage engine could not complete the write. Nothing changed."""

    @classmethod
    def from_previous(cls, previous: str | None) -> WriteStatus:
        """Classify a successful write by the value it replaced."""
        return cls.SUCCESS_NEW if previous is None else cls.SUCCESS_OVERWRITE


class OperationKind(str, Enum):
    """The two operations the store supports."""

    READ = "read"
    WRITE = "write"


class LockMode(Enum):
    """Lock modes for the store-level read/write lock.

    Compatibility Matrix:
                  SHARED  EXCLUSIVE
        SHARED      Y        N
        EXCLUSIVE   N        N
    """

    SHARED = "shared"
    EXCLUSIVE = "exclusive"

    @staticmethod
    def is_compatible(held: LockMode, requested: LockMode) -> bool:
        """Check whether a requested mode can coexist with a held mode."""
        return held is LockMode.SHARED and requested is LockMode.SHARED

    @classmethod
    def for_operation(cls, operation: OperationKind) -> LockMode:
        """Lock mode an operation must hold while it runs."""
        return cls.SHARED if operation is OperationKind.READ else cls.EXCLUSIVE
