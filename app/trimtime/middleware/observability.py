"""One JSON line per store request, tagged with the trace id and error code."""

from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.trimtime.core.logging import log_json

logger = logging.getLogger("trimtime.request")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def build_request_log_payload(*, request: Request, response: Response | None, latency_ms: float) -> dict:
    state = request.state
    return {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "method": request.method,
        "route": _route_template(request),
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": round(latency_ms, 2),
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            payload = build_request_log_payload(
                request=request,
                response=response,
                latency_ms=(time.perf_counter() - started) * 1000,
            )
            level = logging.WARNING if payload["status_code"] >= 500 else logging.INFO
            log_json(logger, payload, level=level)
        return response
