"""REST API adapter for the key-value store.

This module provides a FastAPI-based REST API over a KeyValueService.

Endpoints:
    GET /{key}  - Read the value stored at key
    POST /{key} - Write the raw request body (UTF-8 text) at key

Every request must carry ``Authorization: Bearer <token>``; requests
without the configured token are rejected with 401 before the store is
touched. Responses are gzip-compressed when the client accepts it.

Status mapping:
    read found                 200  {value,          "Found"}
    key missing / empty table  404  {"",             "Missing"}
    read engine failure        500  {error,          "Failure"}
    write created              201  {"",             "SuccessNew"}
    write overwrite            200  {previous value, "SuccessOverwrite"}
    write engine failure       500  {error,          "Failure"}

Usage:
    from kv_store.adapters.inbound.rest_api import create_app
    from kv_store.application import KeyValueService

    service = KeyValueService("/path/to/store.sqlite3", "main")
    service.start()

    app = create_app(service, token="s3cret")
    # Run with uvicorn: uvicorn app:app --host 0.0.0.0 --port 9958
"""

from __future__ import annotations

import secrets

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from kv_store import __version__
from kv_store.application import KeyValueService
from kv_store.domain.value_objects import Key, ReadStatus, Value, WriteStatus
from kv_store.ports.inbound.key_value_store import EngineFailure, NotFoundError


class ReadResponse(BaseModel):
    """Response model for a read."""

    value: str = Field("", description="The stored value, or the error description")
    status: ReadStatus = Field(..., description="Read outcome")


class WriteResponse(BaseModel):
    """Response model for a write."""

    value: str = Field(
        "", description="The previous value on overwrite, or the error description"
    )
    status: WriteStatus = Field(..., description="Write outcome")


def _respond(status_code: int, body: BaseModel) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app(
    service: KeyValueService,
    token: str,
    gzip_minimum_size: int = 500,
) -> FastAPI:
    """Create a FastAPI application for the key-value store.

    Args:
        service: The started key-value service to serve.
        token: Bearer token every request must present.
        gzip_minimum_size: Smallest response body (bytes) to compress.

    Returns:
        A configured FastAPI application.

    Raises:
        ValueError: If token is empty.
    """
    if not token:
        raise ValueError("bearer token must not be empty")

    expected = token.encode()
    bearer = HTTPBearer(auto_error=False)

    def require_token(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    ) -> None:
        if credentials is None or not secrets.compare_digest(
            credentials.credentials.encode(), expected
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing bearer token",
                headers={"WWW-Authenticate": "Bearer"},
            )

    app = FastAPI(
        title="KV Store API",
        description="Single-table durable key-value store",
        version=__version__,
        dependencies=[Depends(require_token)],
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(GZipMiddleware, minimum_size=gzip_minimum_size)

    @app.get("/{key}", response_model=ReadResponse, tags=["Keys"])
    async def read_key(key: str) -> JSONResponse:
        """Read the value stored at key."""
        if not service.is_started:
            raise HTTPException(status_code=503, detail="Store not started")

        try:
            value = await run_in_threadpool(service.read, Key(key))
        except NotFoundError:
            return _respond(404, ReadResponse(value="", status=ReadStatus.MISSING))
        except EngineFailure as e:
            return _respond(500, ReadResponse(value=str(e), status=ReadStatus.FAILURE))

        return _respond(200, ReadResponse(value=value, status=ReadStatus.FOUND))

    @app.post("/{key}", response_model=WriteResponse, tags=["Keys"])
    async def write_key(key: str, request: Request) -> JSONResponse:
        """Store the raw request body at key."""
        if not service.is_started:
            raise HTTPException(status_code=503, detail="Store not started")

        body = await request.body()
        try:
            payload = body.decode("utf-8")
        except UnicodeDecodeError:
            return _respond(
                400,
                WriteResponse(
                    value="request body is not valid UTF-8", status=WriteStatus.FAILURE
                ),
            )

        try:
            previous = await run_in_threadpool(service.write, Key(key), Value(payload))
        except EngineFailure as e:
            return _respond(500, WriteResponse(value=str(e), status=WriteStatus.FAILURE))

        if previous is None:
            return _respond(201, WriteResponse(value="", status=WriteStatus.SUCCESS_NEW))
        return _respond(
            200, WriteResponse(value=previous, status=WriteStatus.SUCCESS_OVERWRITE)
        )

    return app
