"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. Every test
gets fresh workers (unique emails), so tests sharing the session database
never read each other's snapshots or alerts.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_compliance.db")
os.environ.setdefault("LOG_FORMAT", "console")

import itertools  # noqa: E402
import uuid  # noqa: E402
from datetime import date, datetime, time, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.db.base import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.worker import Worker, WorkerRole  # noqa: E402

SQLITE_URL = "sqlite:///./test_compliance.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_worker_seq = itertools.count(1)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def at_noon(day: date) -> datetime:
    """A UTC timestamp in the middle of `day`."""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_worker(db):
    """Factory: insert a worker with a unique email and return it."""
    def _make(role: WorkerRole = WorkerRole.worker, name: str | None = None) -> Worker:
        n = next(_worker_seq)
        worker = Worker(
            name=name or f"Worker {n}",
            email=f"worker-{n}-{uuid.uuid4().hex[:8]}@site.test",
            role=role,
        )
        db.add(worker)
        db.commit()
        db.refresh(worker)
        return worker
    return _make
