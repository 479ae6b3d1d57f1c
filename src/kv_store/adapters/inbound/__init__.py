"""Inbound adapters for the key-value store.

Inbound adapters handle incoming requests and convert them to calls on
the KeyValueService.

Exports:
    REST API:
        - create_app: Create the FastAPI application
        - ReadResponse, WriteResponse: Wire response models
    CLI:
        - main: Command-line entry point
"""

from kv_store.adapters.inbound.cli import main
from kv_store.adapters.inbound.rest_api import ReadResponse, WriteResponse, create_app

__all__ = [
    "create_app",
    "ReadResponse",
    "WriteResponse",
    "main",
]
