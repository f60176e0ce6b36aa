"""FastAPI Boundary Integration

Parse-don't-validate at the HTTP edge: a Starlette request is read once
under the schema's body cap, handed to the synchronous object validator,
and either the validated result (or an unmarshalled model) reaches the
route or an HTTPException with the collected errors is raised.

Usage:
    signup = Object().string("Name", MinLength(5)).int("Count")

    @router.post("/signup")
    async def create(result: ObjectResult = validated_request(signup)):
        ...

    @router.post("/signup-model")
    async def create_model(form: SignupForm = validated_request(signup, SignupForm)):
        ...
"""
from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from ursa.errors import ValidationError
from ursa.logging import boundary_logger, validation_context

from .object import ObjectValidator
from .result import ObjectResult
from .sources import HTTPRequest


async def read_starlette_request(request: Request, max_body_size: int) -> HTTPRequest:
    """Buffer a Starlette request body, reading at most one byte past the cap."""
    declared = request.headers.get("content-length")
    length = int(declared) if declared and declared.isdigit() else None

    chunks: list[bytes] = []
    if length is None or length <= max_body_size:
        size = 0
        async for chunk in request.stream():
            chunks.append(chunk)
            size += len(chunk)
            if size > max_body_size:
                break

    return HTTPRequest(
        method=request.method,
        headers=dict(request.headers),
        query_string=request.url.query,
        body=b"".join(chunks),
        content_length=length,
    )


def error_status(result: ObjectResult) -> int:
    """Most specific HTTP status among the errors; 422 when all are validation failures."""
    statuses = [e.code.http_status for e in result.errors]
    return next((s for s in statuses if s != 422), 422)


class ValidatedRequest:
    """FastAPI dependency for a validated request.

    Returns the ObjectResult, or ``target`` filled from it when given.
    """

    def __init__(self, schema: ObjectValidator, target: Any = None):
        self.schema = schema
        self.target = target

    async def __call__(self, request: Request) -> Any:
        incoming = await read_starlette_request(request, self.schema.max_body_size)
        with validation_context(route=request.url.path, method=request.method):
            result = self.schema.parse(incoming)
        if not result.valid:
            status_code = error_status(result)
            log_method = boundary_logger().warning if status_code < 500 else boundary_logger().error
            log_method(
                "request_validation_failed",
                path=request.url.path,
                status_code=status_code,
                errors=[str(e) for e in result.errors],
            )
            raise HTTPException(
                status_code=status_code,
                detail=[e.to_dict() for e in result.errors],
            )
        if self.target is None:
            return result
        return result.unmarshal(self.target)


def validated_request(schema: ObjectValidator, target: Any = None) -> Any:
    """FastAPI dependency factory for a validated request.

    Usage:
        @router.post("/items")
        async def create(item: Item = validated_request(item_schema, Item)):
            ...
    """
    return Depends(ValidatedRequest(schema, target))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle ValidationError raised by unwrap/unmarshal inside route handlers."""
    boundary_logger().warning(
        "validation_error",
        path=request.url.path,
        errors=[str(e) for e in exc.errors],
    )
    return JSONResponse(status_code=422, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
