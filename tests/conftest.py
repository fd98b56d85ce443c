"""Shared fixtures: point the app at a throwaway SQLite file before it is imported."""

import os
import tempfile
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="daywheel-tests-")
os.environ.setdefault("DB_PATH", str(Path(_TMP_DIR) / "test.sqlite3"))

import pytest  # noqa: E402


@pytest.fixture
def db_tables():
    from daywheel.database import Base, engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(db_tables):
    from daywheel.database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_tables):
    from fastapi.testclient import TestClient

    from daywheel.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user(client):
    response = client.post("/api/users", json={"nickname": "mika"})
    assert response.status_code == 201
    return response.json()
