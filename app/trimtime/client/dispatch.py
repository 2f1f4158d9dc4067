"""Fire-and-forget execution of remote writes.

Local state is updated before a write is dispatched, so callers never wait on
the remote store. A failed write is logged as a ``RemoteWriteError`` and kept
in ``failures``; it is never raised back into the register.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Protocol, Sequence

from app.trimtime.core.error_catalog import RemoteWriteError
from app.trimtime.core.logging import log_json

logger = logging.getLogger("trimtime.remote_write")

Work = Callable[[], Any]
Step = tuple[str, Work]


class WriteDispatcher(Protocol):
    def submit(self, collection: str, operation: str, work: Work) -> None: ...

    def submit_steps(self, collection: str, steps: Sequence[Step]) -> None: ...


class _FailureLog:
    def __init__(self, keep: int = 100) -> None:
        self.failures: deque[RemoteWriteError] = deque(maxlen=keep)

    def _run(self, collection: str, operation: str, work: Work) -> None:
        try:
            work()
        except Exception as exc:
            error = RemoteWriteError(collection, operation, exc)
            self.failures.append(error)
            log_json(
                logger,
                {
                    "event": "remote_write_failed",
                    "collection": collection,
                    "operation": operation,
                    "error_class": exc.__class__.__name__,
                    "error": str(exc),
                },
                level=logging.ERROR,
            )
            return
        log_json(
            logger,
            {"event": "remote_write", "collection": collection, "operation": operation},
            level=logging.DEBUG,
        )

    def _run_steps(self, collection: str, steps: Sequence[Step]) -> None:
        # Steps run in order; a failed step does not stop the ones after it.
        for operation, work in steps:
            self._run(collection, operation, work)


class InlineDispatcher(_FailureLog):
    """Runs each write on the caller's thread. Used by tests and scripts."""

    def submit(self, collection: str, operation: str, work: Work) -> None:
        self._run(collection, operation, work)

    def submit_steps(self, collection: str, steps: Sequence[Step]) -> None:
        self._run_steps(collection, steps)


class BackgroundDispatcher(_FailureLog):
    def __init__(self, max_workers: int = 4, keep: int = 100) -> None:
        super().__init__(keep=keep)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="trimtime-write")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def _track(self, future: Future) -> None:
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def submit(self, collection: str, operation: str, work: Work) -> None:
        self._track(self._executor.submit(self._run, collection, operation, work))

    def submit_steps(self, collection: str, steps: Sequence[Step]) -> None:
        self._track(self._executor.submit(self._run_steps, collection, list(steps)))

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: float | None = None) -> bool:
        """Block until every dispatched write has finished. Returns False on timeout."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _done, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending)
