"""Response envelope ``{success, message?, data?, error?}`` and FastAPI error handlers."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import get_settings
from shared.errors import ApplicationError

logger = structlog.get_logger(__name__)


def success(data: Any = None, message: str | None = None) -> dict:
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


def failure(message: str, error: Any = None) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = jsonable_encoder(error)
    return body


def _first_message(messages: dict) -> str:
    for field_messages in messages.values():
        if isinstance(field_messages, (list, tuple)) and field_messages:
            return str(field_messages[0])
        if field_messages:
            return str(field_messages)
    return "Validation failed"


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        error_type=type(exc).__name__,
        error_message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=failure(exc.message, exc.errors))


async def domain_validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    messages = exc.messages if isinstance(exc.messages, dict) else {"_entity": [str(exc.messages)]}
    return JSONResponse(status_code=400, content=failure(_first_message(messages), messages))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=failure("Validation failed", errors))


async def not_found_error_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=failure("Resource not found"))


async def invalid_operation_error_handler(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=failure(str(exc)))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=failure(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    detail = None if get_settings().is_production else str(exc)
    return JSONResponse(status_code=500, content=failure("Internal server error", detail))


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope-producing exception handlers on ``app``."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(ValidationError, domain_validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_error_handler)
    app.add_exception_handler(InvalidOperationError, invalid_operation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
