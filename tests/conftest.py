# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from murmur.api.v1.dependencies import get_realtime_server, get_realtime_server_ws
from murmur.db.session import Base
from murmur.db.session import get_db as app_get_session
from murmur.main import app as fastapi_app
from murmur.models import User
from murmur.realtime import RealtimeServer
from tests.factories import auth_headers, make_user

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()

        # Services commit, so wipe every table to give each test a clean database.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return make_user(db_session, username="alice", full_name="Alice Liddell", diamonds=100)


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return make_user(db_session, username="bob", full_name="Bob Builder")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


# --- File-backed database for code that runs sessions in worker threads -------------


@pytest.fixture()
def session_factory(tmp_path: Path) -> Iterator[Callable[[], Session]]:
    """Session factory over a throwaway SQLite file, safe to use from several threads."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'realtime.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    try:
        yield sessionmaker(bind=file_engine, autoflush=False)
    finally:
        file_engine.dispose()


@pytest.fixture()
def file_db(session_factory: Callable[[], Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def realtime_server(session_factory: Callable[[], Session]) -> RealtimeServer:
    return RealtimeServer(session_factory=session_factory, send_timeout=1.0)


@pytest.fixture()
def use_realtime_server(app: FastAPI, realtime_server: RealtimeServer) -> Iterator[RealtimeServer]:
    """Route both HTTP and websocket endpoints to ``realtime_server``."""
    app.dependency_overrides[get_realtime_server] = lambda: realtime_server
    app.dependency_overrides[get_realtime_server_ws] = lambda: realtime_server
    try:
        yield realtime_server
    finally:
        app.dependency_overrides.pop(get_realtime_server, None)
        app.dependency_overrides.pop(get_realtime_server_ws, None)

