"""
Fixtures for database service tests.

The SQLite engine and sessions come from backend/conftest.py; this file adds
factories for job rows and enriched cards.
"""
import pytest

from db.jobs_service import persist_new_jobs
from enrichment.orchestrator import build_minimal_card
from models.job import Job
from sourcing.models import NormalizedJob


def _normalized_job(i: int = 0, **fields) -> NormalizedJob:
    values = dict(
        company=f"Company {i}",
        role="Backend Engineer",
        location="Remote",
        source_name="remoteok",
        source_id=str(i),
    )
    values.update(fields)
    return NormalizedJob(**values)


@pytest.fixture
def make_normalized_job():
    """Factory: make_normalized_job(i, **fields) -> NormalizedJob."""
    return _normalized_job


@pytest.fixture
def seed_jobs():
    """
    Factory that stores count new postings (queued as pending).

    Returns the ids in insertion order.
    """
    def seed(db, count: int, **fields) -> list[int]:
        jobs = [_normalized_job(i, **fields) for i in range(count)]
        persist_new_jobs(db, jobs)
        return [
            job_id for (job_id,) in db.query(Job.id).order_by(Job.id).all()
        ][-count:]
    return seed


@pytest.fixture
def make_card():
    """Factory: make_card(company) -> a network-free EnrichedJobCard."""
    def make(company: str = "Acme", **fields):
        return build_minimal_card(_normalized_job(company=company, **fields))
    return make
