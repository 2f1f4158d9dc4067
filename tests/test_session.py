from datetime import timedelta

import pytest

from app.trimtime.core.error_catalog import AuthenticationError
from app.trimtime.services.session import SessionContext, SessionWatcher
from tests.register_helpers import ADMIN, BARBER

STAFF = [ADMIN, BARBER]


def test_login_matches_exact_credentials(session):
    with pytest.raises(AuthenticationError):
        session.login("Barber", "barber123", STAFF)
    with pytest.raises(AuthenticationError):
        session.login("barber", "wrong", STAFF)
    assert session.operator is None

    user = session.login("barber", "barber123", STAFF)

    assert user == BARBER
    assert session.require_operator() == BARBER


def test_login_ttl_depends_on_remember_me(session, auth_store, clock):
    session.login("admin", "admin123", STAFF)
    assert auth_store.load().expires_at == clock.now + timedelta(minutes=60)

    session.login("admin", "admin123", STAFF, remember_me=True)
    assert auth_store.load().expires_at == clock.now + timedelta(days=30)


def test_logout_clears_identity_and_slot(session, auth_store):
    session.login("admin", "admin123", STAFF)

    session.logout()

    assert session.operator is None
    assert auth_store.load() is None
    with pytest.raises(AuthenticationError):
        session.require_operator()


def test_check_expiry_logs_out_only_after_expiry(session, clock):
    session.login("admin", "admin123", STAFF)

    clock.advance(minutes=59)
    assert session.check_expiry() is False
    assert session.operator == ADMIN

    clock.advance(minutes=2)
    assert session.check_expiry() is True
    assert session.operator is None


def test_restore_picks_up_a_live_session(auth_store, clock):
    SessionContext(auth_store, clock=clock).login("barber", "barber123", STAFF, remember_me=True)

    restarted = SessionContext(auth_store, clock=clock)

    assert restarted.restore() == BARBER
    assert restarted.operator == BARBER


def test_restore_discards_expired_session(auth_store, clock):
    SessionContext(auth_store, clock=clock).login("barber", "barber123", STAFF)
    clock.advance(hours=2)

    restarted = SessionContext(auth_store, clock=clock)

    assert restarted.restore() is None
    assert auth_store.load() is None


def test_restore_discards_unreadable_slot(auth_store, clock):
    auth_store._path().write_text("{not json")

    assert SessionContext(auth_store, clock=clock).restore() is None
    assert not auth_store._path().exists()


def test_refresh_identity_ignores_other_records(session, auth_store):
    session.login("barber", "barber123", STAFF)
    expires_at = auth_store.load().expires_at

    assert session.refresh_identity(ADMIN.model_copy(update={"name": "Other"})) is False
    assert session.refresh_identity(BARBER.model_copy(update={"email": "b@example.com"})) is True

    stored = auth_store.load()
    assert stored.user.email == "b@example.com"
    assert stored.expires_at == expires_at


def test_watcher_checks_once_on_start(session, clock):
    session.login("admin", "admin123", STAFF)
    clock.advance(hours=1, seconds=1)
    watcher = SessionWatcher(session, interval_seconds=3600)

    watcher.start()
    watcher.stop()

    assert session.operator is None
