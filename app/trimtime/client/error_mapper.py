from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    ConflictError,
    MethodNotAllowedError,
    NotFoundError,
    RequestValidationError,
    ServerError,
)

_BY_STATUS: dict[int, type[ApiError]] = {
    400: RequestValidationError,
    404: NotFoundError,
    405: MethodNotAllowedError,
    409: ConflictError,
    422: RequestValidationError,
}


def error_class_for(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return _BY_STATUS.get(status_code, ApiError)


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    """Turn a store error envelope into the matching ``ApiError`` subclass.

    The envelope's own ``trace_id`` wins over the one the client sent.
    """
    body = dict(payload or {})
    error_cls = error_class_for(status_code)
    return error_cls(
        code=str(body.get("code") or f"HTTP_{status_code}"),
        message=str(body.get("message") or f"store answered {status_code}"),
        details=body.get("details"),
        trace_id=str(body["trace_id"]) if body.get("trace_id") else trace_id,
        status_code=status_code,
        raw_payload=body,
    )
