"""
Database service functions for job records.

Provides the normalizer/deduplicator used by the scrape worker: new postings
are inserted already queued for enrichment, duplicates inside the dedup
window are dropped.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.job import EnrichmentStatus, Job
from sourcing.models import DedupResult, NormalizedJob

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
WRITE_BATCH_SIZE = 500
# Bound on the IN (...) list when looking up existing keys
LOOKUP_CHUNK_SIZE = 500


def _chunks(items: list, size: int) -> Iterable[list]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def get_existing_dedup_keys(
    db: Session,
    keys: Iterable[str],
    since: datetime,
) -> set[str]:
    """
    Return the subset of keys already stored with created_at >= since.

    Args:
        db: Database session
        keys: Candidate dedup keys (only these are looked up)
        since: Start of the dedup window

    Returns:
        Set of keys that already exist inside the window
    """
    unique_keys = sorted(set(keys))
    existing: set[str] = set()
    for chunk in _chunks(unique_keys, LOOKUP_CHUNK_SIZE):
        rows = db.execute(
            select(Job.dedup_key).where(
                Job.dedup_key.in_(chunk),
                Job.created_at >= since,
            )
        )
        existing.update(row[0] for row in rows)
    return existing


def _job_row(job: NormalizedJob, now: datetime) -> Job:
    return Job(
        dedup_key=job.dedup_key,
        company=job.company,
        role=job.role,
        location=job.location,
        salary=job.salary,
        description=job.description,
        requirements=list(job.requirements),
        benefits=list(job.benefits),
        tags=list(job.tags),
        company_logo=job.company_logo,
        team_size=job.team_size,
        culture=list(job.culture),
        source_name=job.source_name,
        source_id=job.source_id,
        source_url=job.source_url,
        apply_url=job.apply_url,
        posted_at=job.created_at,
        enrichment_status=EnrichmentStatus.PENDING,
        enrichment_retries=0,
        enrichment_queued_at=now,
        created_at=now,
        updated_at=now,
    )


def persist_new_jobs(
    db: Session,
    jobs: list[NormalizedJob],
    window_days: int = DEFAULT_WINDOW_DAYS,
    write_batch_size: int = WRITE_BATCH_SIZE,
    now: Optional[datetime] = None,
) -> DedupResult:
    """
    Insert postings not already stored within the dedup window.

    Identity is the case-insensitive company|role|location key. Duplicates
    within the same batch are dropped too (first occurrence wins). Inserted
    records start in the enrichment queue (status=pending, retries=0).

    Args:
        db: Database session
        jobs: Normalized postings from all adapters, in adapter order
        window_days: Only records created within this many days count as existing
        write_batch_size: Max rows per insert/commit
        now: Current time (injectable for tests)

    Returns:
        DedupResult with fetched / new / duplicates and new counts per source
    """
    if not jobs:
        return DedupResult(fetched=0, new=0, duplicates=0)

    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=window_days)

    existing = get_existing_dedup_keys(db, (job.dedup_key for job in jobs), since)

    seen = set(existing)
    new_jobs: list[NormalizedJob] = []
    for job in jobs:
        key = job.dedup_key
        if key in seen:
            continue
        seen.add(key)
        new_jobs.append(job)

    for chunk in _chunks(new_jobs, write_batch_size):
        db.add_all([_job_row(job, now) for job in chunk])
        db.commit()

    new_by_source = Counter(job.source_name or "unknown" for job in new_jobs)
    duplicates = len(jobs) - len(new_jobs)

    logger.info(
        f"Persisted {len(new_jobs)} new jobs "
        f"({duplicates} duplicates, {len(existing)} already stored within {window_days} days)"
    )

    return DedupResult(
        fetched=len(jobs),
        new=len(new_jobs),
        duplicates=duplicates,
        new_by_source=dict(new_by_source),
    )


def get_job_by_id(db: Session, job_id: int) -> Optional[Job]:
    """Get a single job by ID, or None."""
    return db.query(Job).filter(Job.id == job_id).first()
