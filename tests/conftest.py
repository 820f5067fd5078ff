"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

_TEST_DIR = Path(tempfile.mkdtemp(prefix="fitflex-tests-"))

os.environ["STRAVA_CLIENT_ID"] = os.environ.get("STRAVA_CLIENT_ID") or "test-client-id"
os.environ["STRAVA_CLIENT_SECRET"] = os.environ.get("STRAVA_CLIENT_SECRET") or "test-client-secret"
os.environ["ANTHROPIC_API_KEY"] = os.environ.get("ANTHROPIC_API_KEY") or "test-anthropic-key"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'fitflex-test.db'}"
os.environ["LOG_DIR"] = str(_TEST_DIR / "logs")
os.environ["BASE_URL"] = "http://localhost:8000"
os.environ["COOKIE_SECURE"] = "false"

from fitflex.logging_config import configure_logging

configure_logging()

from fitflex.database import Base, SessionLocal, engine
from fitflex.main import app

Base.metadata.create_all(engine)


@pytest.fixture(autouse=True)
def clean_database() -> Iterator[None]:
    """Empty every table after each test."""

    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def test_client() -> TestClient:
    """Provide a FastAPI test client with an empty cookie jar."""

    return TestClient(app)


@pytest.fixture()
def db_session():
    """Session on the test database, closed after the test."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
