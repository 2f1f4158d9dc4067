"""Correlation id shared by every call a register makes to the store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping

TRACE_HEADER = "X-Trace-ID"


def _header_value(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value:
        return value
    wanted = name.lower()
    for key, candidate in headers.items():
        if key.lower() == wanted and candidate:
            return candidate
    return None


@dataclass
class TraceContext:
    trace_id: str | None = None

    def ensure(self) -> str:
        """Return the current id, minting one on first use."""
        if not self.trace_id:
            self.trace_id = uuid.uuid4().hex
        return self.trace_id

    def update_from_headers(self, headers: Mapping[str, str]) -> None:
        echoed = _header_value(headers, TRACE_HEADER)
        if echoed:
            self.trace_id = echoed

    def update_from_payload(self, payload: Mapping[str, object]) -> None:
        echoed = payload.get("trace_id")
        if isinstance(echoed, str) and echoed:
            self.trace_id = echoed
