"""Value objects for the key-value store domain.

Exports:
    Identifiers:
        - Key, Value: Opaque text key and value
        - TableName: Validated table name
        - create_table_name: Validating constructor for TableName

    Outcomes:
        - ReadStatus: Found / Missing / Failure
        - WriteStatus: SuccessNew / SuccessOverwrite / Failure
        - OperationKind: read / write
        - LockMode: SHARED / EXCLUSIVE
"""

from kv_store.domain.value_objects.identifiers import (
    MAX_TABLE_NAME_LENGTH,
    Key,
    TableName,
    Value,
    create_table_name,
)
from kv_store.domain.value_objects.outcomes import (
    LockMode,
    OperationKind,
    ReadStatus,
    WriteStatus,
)

__all__ = [
    # Identifiers
    "Key",
    "Value",
    "TableName",
    "MAX_TABLE_NAME_LENGTH",
    "create_table_name",
    # Outcomes
    "ReadStatus",
    "WriteStatus",
    "OperationKind",
    "LockMode",
]
