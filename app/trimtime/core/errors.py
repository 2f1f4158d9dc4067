"""Exception handlers that render every failure as the store's error envelope.

The envelope is ``{code, message, details, trace_id}``; the code and the
exception class are also stashed on ``request.state`` for the request log.
"""

import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.trimtime.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition

logger = logging.getLogger(__name__)

_STATUS_CODE_NAMES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}
_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header"})


def _plain(value):
    """Decimals go out as fixed-point strings, the same as row payloads."""
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _field_errors(exc: RequestValidationError) -> dict:
    errors = []
    for problem in exc.errors():
        loc = list(problem.get("loc", ()))
        field = ".".join(str(part) for part in loc if part not in _LOCATION_PREFIXES)
        errors.append(
            {
                "field": field or None,
                "message": problem.get("msg", "Invalid value"),
                "type": problem.get("type", "validation_error"),
                "loc": loc,
                "input": _plain(problem.get("input")),
            }
        )
    return {"errors": errors}


def error_response(code: str, message: str, details: object, trace_id: str, status_code: int) -> JSONResponse:
    envelope = {"code": code, "message": message, "details": _plain(details), "trace_id": trace_id}
    return JSONResponse(status_code=status_code, content=envelope)


def _reply(request: Request, exc: Exception, code: str, message: str, details: object, status_code: int):
    request.state.error_code = code
    request.state.error_class = exc.__class__.__name__
    return error_response(code, message, details, getattr(request.state, "trace_id", ""), status_code)


def _reply_with(request: Request, exc: Exception, definition: ErrorDefinition, details: object):
    return _reply(request, exc, definition.code, definition.message, details, definition.status_code)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _reply_with(request, exc, exc.error, exc.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = _STATUS_CODE_NAMES.get(exc.status_code, "HTTP_ERROR")
        message = "HTTP error" if exc.detail is None else str(exc.detail)
        return _reply(request, exc, code, message, None, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _reply_with(request, exc, ErrorCatalog.VALIDATION_ERROR, _field_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        definition = ErrorCatalog.DB_UNAVAILABLE if isinstance(exc, OperationalError) else ErrorCatalog.INTERNAL_ERROR
        return _reply_with(request, exc, definition, {"type": exc.__class__.__name__})
