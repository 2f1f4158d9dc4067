import importlib
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.trimtime.client.auth_store import AuthStore
from app.trimtime.client.dispatch import InlineDispatcher
from app.trimtime.services.session import SessionContext
from tests.register_helpers import FakeClock, RecordingStore, default_rows


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url

    import app.trimtime.core.config as config
    import app.trimtime.db.session as session
    import app.main as main

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)

    return main.create_app(), session


@pytest.fixture()
def client(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'test.db'}"
    app, session = _setup_app(database_url)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.trimtime.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def auth_store(tmp_path: Path) -> AuthStore:
    return AuthStore(base_dir=tmp_path / "auth")


@pytest.fixture()
def session(auth_store, clock) -> SessionContext:
    return SessionContext(auth_store, clock=clock)


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore(default_rows())


@pytest.fixture()
def dispatcher() -> InlineDispatcher:
    return InlineDispatcher()
