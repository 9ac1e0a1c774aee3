# Pytest configuration for the realty API tests.
# Forces a local SQLite DB, disables Redis and SQS, and wires JWT secrets for deterministic runs.
import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Test-time environment: local SQLite DB, Redis and SQS disabled, predictable JWT secrets
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SQS_ENABLED", "false")
os.environ.setdefault("REALTY_JWT_SECRET", "test-secret")
os.environ.setdefault("REALTY_REFRESH_SECRET", "test-refresh-secret")

import sys
# Ensure the repo root is on sys.path so 'realty' resolves when running pytest without installing
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from realty.main import app  # noqa: E402
from realty.db import Base, SessionLocal, engine  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_db() -> Iterator[None]:
    """
    Session-level database bootstrap using a local SQLite file.

    Drops and recreates schema once per test session to ensure a clean slate.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_db() -> Iterator[None]:
    """Function-level isolation: drop and recreate schema before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db() -> Iterator:
    """A plain ORM session for tests that drive the import pipeline directly."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """FastAPI TestClient bound to the application for HTTP-level tests."""
    with TestClient(app) as c:
        yield c
