import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

TRACE_HEADER = "X-Trace-ID"

# registers send uuid hex; anything else printable up to 128 chars is echoed back
_ACCEPTED = re.compile(r"^[\x21-\x7e]{1,128}$")


def incoming_trace_id(request: Request) -> str:
    supplied = request.headers.get(TRACE_HEADER, "")
    return supplied if _ACCEPTED.match(supplied) else uuid.uuid4().hex


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.trace_id = incoming_trace_id(request)
        response = await call_next(request)
        response.headers[TRACE_HEADER] = request.state.trace_id
        return response
