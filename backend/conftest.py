"""
Pytest configuration and fixtures for testing.

Database tests run against a throwaway SQLite file per test:
- Schema created from the SQLAlchemy models (Base.metadata.create_all)
- Every test gets a fresh database, so tests never see each other's rows
- Services commit normally (no outer transaction to roll back)
- Production and TEST_DATABASE_URL databases are never touched
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from models import Base


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """
    Create a file-backed SQLite engine with the jobs schema.

    A file (not :memory:) is used so several sessions, and the FastAPI
    TestClient thread, share one database.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_busy_timeout(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA busy_timeout = 5000")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """sessionmaker bound to the per-test database (same options as db.session)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_db(session_factory):
    """
    Database session for one test.

    Usage:
        def test_persist(test_db):
            from db.jobs_service import persist_new_jobs

            result = persist_new_jobs(test_db, [job])
            assert result.new == 1
    """
    db = session_factory()

    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def other_db(session_factory):
    """A second, independent session (simulates a concurrent worker)."""
    db = session_factory()

    try:
        yield db
    finally:
        db.close()
