"""Who is operating the register, and the persisted slot that remembers it."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from app.trimtime.client.auth_store import AuthStore
from app.trimtime.core.config import settings
from app.trimtime.core.error_catalog import AuthenticationError
from app.trimtime.core.logging import log_json
from app.trimtime.schemas.catalog import Staff
from app.trimtime.schemas.session import SessionData

logger = logging.getLogger("trimtime.session")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class SessionContext:
    def __init__(
        self,
        auth_store: AuthStore | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        ttl: timedelta | None = None,
        remember_ttl: timedelta | None = None,
    ) -> None:
        self.auth_store = auth_store or AuthStore()
        self._clock = clock
        self.ttl = ttl or timedelta(minutes=settings.SESSION_TTL_MINUTES)
        self.remember_ttl = remember_ttl or timedelta(days=settings.SESSION_REMEMBER_DAYS)
        self.operator: Staff | None = None
        self.expires_at: datetime | None = None
        self._lock = threading.RLock()

    @property
    def is_authenticated(self) -> bool:
        return self.operator is not None

    def require_operator(self) -> Staff:
        if self.operator is None:
            raise AuthenticationError("no operator is logged in")
        return self.operator

    def restore(self) -> Staff | None:
        """Pick up a persisted session at startup; expired or unreadable slots are discarded."""
        stored = self.auth_store.load()
        if stored is None:
            return None
        if _aware(stored.expires_at) <= self._clock():
            self.auth_store.clear()
            return None
        with self._lock:
            self.operator = stored.user
            self.expires_at = _aware(stored.expires_at)
        return self.operator

    def login(self, username: str, password: str, staff: Iterable[Staff], remember_me: bool = False) -> Staff:
        user = next((s for s in staff if s.username == username and s.password == password), None)
        if user is None:
            log_json(logger, {"event": "login_failed", "username": username})
            raise AuthenticationError("invalid username or password")
        expires_at = self._clock() + (self.remember_ttl if remember_me else self.ttl)
        with self._lock:
            self.operator = user
            self.expires_at = expires_at
            self.auth_store.save(SessionData(user=user, expires_at=expires_at))
        log_json(logger, {"event": "login", "staff_id": user.id, "remember_me": remember_me})
        return user

    def logout(self, reason: str = "logout") -> None:
        with self._lock:
            staff_id = self.operator.id if self.operator else None
            self.operator = None
            self.expires_at = None
            self.auth_store.clear()
        log_json(logger, {"event": "logout", "staff_id": staff_id, "reason": reason})

    def check_expiry(self) -> bool:
        """Log out when the persisted expiry has passed. Returns True if it did."""
        stored = self.auth_store.load()
        if stored is None or _aware(stored.expires_at) > self._clock():
            return False
        self.logout(reason="expired")
        return True

    def refresh_identity(self, record: Staff) -> bool:
        """Replace the operator with a newer copy of its own staff record.

        The persisted slot is rewritten with the same expiry so the change
        survives a restart without a new login.
        """
        with self._lock:
            if self.operator is None or self.operator.id != record.id:
                return False
            self.operator = record
            stored = self.auth_store.load()
            if stored is not None:
                self.auth_store.save(stored.model_copy(update={"user": record}))
        return True


class SessionWatcher:
    """Polls ``SessionContext.check_expiry`` on a fixed interval from a daemon thread."""

    def __init__(self, session: SessionContext, interval_seconds: float | None = None) -> None:
        self.session = session
        self.interval_seconds = interval_seconds or settings.SESSION_CHECK_INTERVAL_SECONDS
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self.session.check_expiry()
        self._thread = threading.Thread(target=self._loop, name="trimtime-session-watch", daemon=True)
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.session.check_expiry()
            except Exception:
                logger.exception("session expiry check failed")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval_seconds)
            self._thread = None
