"""Blocking JSON transport for the register's store adapter.

Reads are retried on connection failures and 5xx answers. Writes go out once
unless the caller passes ``retry_mutation=True``; the store's upsert, delete and
update endpoints are keyed by id so replaying them is harmless.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

JsonBody = dict[str, Any] | list[Any] | None

_SAFE_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class StoreCall:
    operation: str
    result: str
    trace_id: str | None
    duration_ms: int = 0


def _decode_error_body(response: requests.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except json.JSONDecodeError:
        return {"message": response.text} if response.text else None
    return body if isinstance(body, dict) else None


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    last_operation: StoreCall | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            self.session = self._pooled_session(self.config.max_connections)

    @staticmethod
    def _pooled_session(size: int) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=size, pool_maxsize=size)
        for scheme in ("http://", "https://"):
            session.mount(scheme, adapter)
        return session

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def _attempts(self, method: str, retry_mutation: bool) -> int:
        if method in _SAFE_METHODS or retry_mutation:
            return self.config.retries + 1
        return 1

    def _pause(self, attempt: int) -> None:
        delay = self.config.retry_backoff_seconds * (2**attempt)
        if delay > 0:
            time.sleep(delay)

    def _finish(self, operation: str, started: float, result: str) -> None:
        self.last_operation = StoreCall(
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id,
        )
        logger.debug("store call %s finished with %s", operation, result)

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        retry_mutation: bool = False,
        operation: str = "unknown",
    ) -> JsonBody:
        verb = method.upper()
        url = self.url_for(path)
        attempts = self._attempts(verb, retry_mutation)
        started = time.monotonic()
        headers = {"Accept": "application/json", TRACE_HEADER: self.trace.ensure()}

        response: requests.Response | None = None
        for attempt in range(attempts):
            last_try = attempt == attempts - 1
            try:
                response = self.session.request(
                    method=verb,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if last_try:
                    self._finish(operation, started, "error")
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__, "attempts": attempts},
                        trace_id=self.trace.trace_id,
                        status_code=0,
                    ) from exc
                logger.debug("store call %s attempt %s failed: %s", operation, attempt + 1, exc)
            else:
                if response.status_code < 500 or last_try:
                    break
            self._pause(attempt)

        self.trace.update_from_headers(response.headers)

        if response.ok:
            self._finish(operation, started, "success")
            return response.json() if response.content else None

        payload = _decode_error_body(response)
        if payload:
            self.trace.update_from_payload(payload)
        self._finish(operation, started, "error")
        raise map_error(response.status_code, payload, self.trace.trace_id)
