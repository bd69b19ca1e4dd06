"""
Durable enrichment queue backed by the jobs table.

Flow:
    1. persist_new_jobs() inserts records with enrichment_status='pending'
    2. The batch worker calls claim_batch() (pending -> processing)
    3. Each claimed record ends in mark_enriched() or mark_failed()
    4. requeue_failed_jobs() moves failed records back to pending; once
       enrichment_retries reaches the limit a record is failed_permanent
       and is never claimed again

Every status change is a guarded UPDATE (WHERE enrichment_status = <expected>),
so a record can't skip 'processing' and two workers can't finish the same
claim.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from enrichment.types import EnrichedJobCard
from models.job import EnrichmentStatus, Job

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
DEFAULT_BATCH_SIZE = 10
MAX_CLAIM_ROUNDS = 3
WRITE_BATCH_SIZE = 500
ERROR_MAX_LENGTH = 1000


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enqueue
# =============================================================================

def enqueue_job(db: Session, job_id: int) -> bool:
    """
    Queue a single record for (re-)enrichment.

    Records currently being processed or permanently failed are left alone.
    The retry count is kept as is.

    Returns:
        True if the record was moved to pending, False otherwise
    """
    now = _now()
    result = db.execute(
        update(Job)
        .where(
            Job.id == job_id,
            Job.enrichment_status.notin_([
                EnrichmentStatus.PROCESSING,
                EnrichmentStatus.FAILED_PERMANENT,
            ]),
        )
        .values(
            enrichment_status=EnrichmentStatus.PENDING,
            enrichment_queued_at=now,
            enrichment_error=None,
            updated_at=now,
        )
    )
    db.commit()

    queued = result.rowcount > 0
    logger.info(f"Enqueue job {job_id}: {'queued' if queued else 'skipped'}")
    return queued


def queue_all_unenriched_jobs(db: Session, write_batch_size: int = WRITE_BATCH_SIZE) -> int:
    """
    Queue every record that was never queued (status 'none').

    Writes happen in chunks of write_batch_size, one commit per chunk.

    Returns:
        Number of records queued
    """
    ids = list(db.execute(
        select(Job.id)
        .where(Job.enrichment_status == EnrichmentStatus.NONE)
        .order_by(Job.id)
    ).scalars())

    queued = 0
    for start in range(0, len(ids), write_batch_size):
        chunk = ids[start:start + write_batch_size]
        now = _now()
        result = db.execute(
            update(Job)
            .where(
                Job.id.in_(chunk),
                Job.enrichment_status == EnrichmentStatus.NONE,
            )
            .values(
                enrichment_status=EnrichmentStatus.PENDING,
                enrichment_queued_at=now,
                enrichment_retries=0,
                updated_at=now,
            )
        )
        db.commit()
        queued += result.rowcount

    logger.info(f"Queued {queued} unenriched jobs")
    return queued


def requeue_failed_jobs(db: Session) -> int:
    """
    Move every 'failed' record back to 'pending'.

    enrichment_retries is preserved so the permanent-failure limit still
    applies on the next attempt.

    Returns:
        Number of records requeued
    """
    now = _now()
    result = db.execute(
        update(Job)
        .where(Job.enrichment_status == EnrichmentStatus.FAILED)
        .values(
            enrichment_status=EnrichmentStatus.PENDING,
            enrichment_queued_at=now,
            updated_at=now,
        )
    )
    db.commit()

    if result.rowcount:
        logger.info(f"Requeued {result.rowcount} failed jobs")
    return result.rowcount


# =============================================================================
# Claim
# =============================================================================

def select_pending_candidates(db: Session, limit: int) -> list[int]:
    """
    Oldest pending record ids, locked where the database supports it.

    On Postgres the rows are locked FOR UPDATE SKIP LOCKED so concurrent
    claimers see disjoint candidate sets; other dialects ignore the lock
    and rely on the compare-and-swap in claim_batch().
    """
    stmt = (
        select(Job.id)
        .where(Job.enrichment_status == EnrichmentStatus.PENDING)
        .order_by(Job.enrichment_queued_at, Job.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    return list(db.execute(stmt).scalars())


def claim_batch(
    db: Session,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_rounds: int = MAX_CLAIM_ROUNDS,
    _select_candidates: Callable[[Session, int], list[int]] = select_pending_candidates,
) -> list[Job]:
    """
    Atomically claim up to batch_size pending records (pending -> processing).

    Each candidate is claimed with a compare-and-swap UPDATE guarded on
    enrichment_status='pending'; a candidate taken by a concurrent claimer
    is skipped and the selection is retried (bounded by max_rounds). The
    whole claim is committed once; on any error it is rolled back and the
    exception propagates, so no partial claim is ever committed.

    Args:
        db: Database session
        batch_size: Max records to claim
        max_rounds: Max selection rounds when candidates were lost to others
        _select_candidates: Injectable for testing

    Returns:
        Claimed Job records, oldest queued first
    """
    claimed_ids: list[int] = []

    try:
        for round_number in range(1, max_rounds + 1):
            needed = batch_size - len(claimed_ids)
            if needed <= 0:
                break

            candidates = [c for c in _select_candidates(db, needed) if c not in claimed_ids]
            if not candidates:
                break

            now = _now()
            lost = 0
            for job_id in candidates:
                result = db.execute(
                    update(Job)
                    .where(
                        Job.id == job_id,
                        Job.enrichment_status == EnrichmentStatus.PENDING,
                    )
                    .values(
                        enrichment_status=EnrichmentStatus.PROCESSING,
                        enrichment_started_at=now,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    claimed_ids.append(job_id)
                else:
                    lost += 1

            if lost == 0:
                # Nothing contended: either the batch is full or the queue is drained
                break
            logger.info(f"Claim round {round_number}: lost {lost} candidates to a concurrent worker")

        db.commit()
    except Exception:
        db.rollback()
        raise

    if not claimed_ids:
        return []

    jobs = (
        db.query(Job)
        .filter(Job.id.in_(claimed_ids))
        .order_by(Job.enrichment_queued_at, Job.id)
        .all()
    )
    logger.info(f"Claimed enrichment batch of {len(jobs)} jobs")
    return jobs


# =============================================================================
# Complete
# =============================================================================

def mark_enriched(db: Session, job_id: int, card: EnrichedJobCard) -> bool:
    """
    Write the enriched card and move processing -> enriched.

    Returns:
        True if the record was updated, False if it was not in 'processing'
    """
    now = _now()
    try:
        result = db.execute(
            update(Job)
            .where(
                Job.id == job_id,
                Job.enrichment_status == EnrichmentStatus.PROCESSING,
            )
            .values(
                **card.to_record_fields(),
                enrichment_status=EnrichmentStatus.ENRICHED,
                enriched_at=now,
                enrichment_error=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    if result.rowcount == 0:
        logger.warning(f"mark_enriched skipped job {job_id}: not in processing")
        return False
    return True


def mark_failed(
    db: Session,
    job_id: int,
    error: str,
    max_retries: int = MAX_RETRIES,
    fallback_card: Optional[EnrichedJobCard] = None,
) -> bool:
    """
    Record a failed attempt: processing -> failed, or failed_permanent once
    the incremented retry count reaches max_retries.

    The increment and the status decision happen in a single UPDATE computed
    from the stored retry count, so concurrent writers can't lose an
    increment. If fallback_card is given it is written only when the record
    has no display data yet (manager IS NULL).

    Returns:
        True if the record was updated, False if it was not in 'processing'
    """
    now = _now()
    retries = Job.enrichment_retries + 1

    try:
        result = db.execute(
            update(Job)
            .where(
                Job.id == job_id,
                Job.enrichment_status == EnrichmentStatus.PROCESSING,
            )
            .values(
                enrichment_retries=retries,
                enrichment_status=case(
                    (retries >= max_retries, EnrichmentStatus.FAILED_PERMANENT),
                    else_=EnrichmentStatus.FAILED,
                ),
                enrichment_error=(error or "")[:ERROR_MAX_LENGTH],
                enrichment_failed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount and fallback_card is not None:
            db.execute(
                update(Job)
                .where(Job.id == job_id, Job.manager.is_(None))
                .values(**fallback_card.to_record_fields())
                .execution_options(synchronize_session=False)
            )

        db.commit()
    except Exception:
        db.rollback()
        raise

    if result.rowcount == 0:
        logger.warning(f"mark_failed skipped job {job_id}: not in processing")
        return False

    logger.warning(f"Job {job_id} enrichment failed: {error}")
    return True


# =============================================================================
# Monitoring
# =============================================================================

def get_stuck_jobs(db: Session, older_than_minutes: int = 30) -> list[dict]:
    """
    Records left in 'processing' longer than older_than_minutes (crashed worker).

    Returns:
        List of {id, company, role, enrichment_status, enrichment_started_at}
    """
    cutoff = _now() - timedelta(minutes=older_than_minutes)
    rows = db.execute(
        select(
            Job.id,
            Job.company,
            Job.role,
            Job.enrichment_status,
            Job.enrichment_started_at,
        )
        .where(
            Job.enrichment_status == EnrichmentStatus.PROCESSING,
            Job.enrichment_started_at < cutoff,
        )
        .order_by(Job.enrichment_started_at)
    )
    return [
        {
            "id": row.id,
            "company": row.company,
            "role": row.role,
            "enrichment_status": row.enrichment_status,
            "enrichment_started_at": row.enrichment_started_at.isoformat() if row.enrichment_started_at else None,
        }
        for row in rows
    ]


def get_enrichment_stats(db: Session) -> dict:
    """
    Count records per enrichment status.

    Returns:
        Dict with one key per status plus total, e.g.
        {none, pending, processing, enriched, failed, failed_permanent, total}
    """
    rows = db.execute(
        select(Job.enrichment_status, func.count(Job.id))
        .group_by(Job.enrichment_status)
    )

    stats = {status: 0 for status in EnrichmentStatus.ALL}
    stats["total"] = 0
    for status, count in rows:
        stats["total"] += count
        if status in stats:
            stats[status] = count
    return stats


def count_remaining(db: Session) -> int:
    """Records still expected to be enriched (pending or failed)."""
    return db.execute(
        select(func.count(Job.id))
        .where(Job.enrichment_status.in_(EnrichmentStatus.REMAINING))
    ).scalar() or 0
