"""Errors raised by the HTTP store adapter.

Every error carries the store's ``code`` and the trace id of the failing call
so a register log line can be matched to the server's.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        text = f"{self.code} ({self.status_code}): {self.message}"
        return f"{text} [trace {self.trace_id}]" if self.trace_id else text


class NotFoundError(ApiError):
    pass


class RequestValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """Duplicate id on an append-only insert."""


class MethodNotAllowedError(ApiError):
    """Upsert, update or delete against the sales collection."""


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """No HTTP answer at all: DNS, refused connection, timeout."""
