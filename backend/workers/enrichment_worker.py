"""
Enrichment Batch Worker

Invoked by the cron endpoint (POST /api/cron/enrich) or directly as a Lambda
on a schedule.

Event format:
{
    "batch_size": 10,     // Optional, default ENRICH_BATCH_SIZE
    "use_test_db": false  // Optional: when true, uses TEST_DATABASE_URL (for local dev)
}

Workflow:
1. Requeue 'failed' records (failed -> pending, retry count kept)
2. Claim one batch (pending -> processing), atomically
3. Enrich the batch with a bounded worker pool (default 3 in flight)
4. Per job:
   - success -> mark_enriched, then delete replaced mirrored photos in the
     background
   - exception -> mark_failed with a minimal card (failed_permanent once
     retries reach the limit)
5. Return {processed, enriched, failed, remaining}

Log Format:
[EnrichmentWorker:batch=X] for batch events,
[EnrichmentWorker:batch=X:job=Y] for per-job events.
"""

import asyncio
import logging
import uuid

from sqlalchemy.orm import Session

from config.settings import settings as app_settings
from db.enrichment_queue import (
    MAX_RETRIES,
    claim_batch,
    count_remaining,
    mark_enriched,
    mark_failed,
    requeue_failed_jobs,
)
from db.session import SessionLocal
from enrichment.context import EnrichmentContext, open_enrichment_context
from enrichment.orchestrator import DEFAULT_CONCURRENCY, build_minimal_card, enrich_job
from enrichment.types import EnrichedJobCard
from utils.worker_logging import EnrichmentLogContext
from workers.types import ClaimedJob, EnrichmentBatchResult

logger = logging.getLogger()
logger.setLevel(logging.INFO)


# =============================================================================
# Worker Logic
# =============================================================================

def schedule_photo_cleanup(
    ctx: EnrichmentContext,
    claimed: ClaimedJob,
    card: EnrichedJobCard,
    log: EnrichmentLogContext,
) -> int:
    """
    Spawn background deletes for mirrored photos this card replaced.

    Never awaited by the caller: the enriched state is already committed
    and a failed delete is only logged.

    Returns:
        Number of delete tasks spawned
    """
    if ctx.storage is None or not claimed.previous_photos:
        return 0

    keys = ctx.storage.orphaned_keys(
        claimed.previous_photos,
        [card.manager.photo, card.hr.photo],
    )
    for key in keys:
        ctx.background.spawn(ctx.storage.delete_object(key), name=f"delete-photo:{key}")

    if keys:
        log.log_info(f"Scheduled cleanup of {len(keys)} replaced photos")
    return len(keys)


async def process_enrichment_batch(
    db: Session,
    ctx: EnrichmentContext,
    batch_size: int = 10,
    concurrency: int = DEFAULT_CONCURRENCY,
    max_retries: int = MAX_RETRIES,
    use_test_db: bool = False,
    batch_id: str = None,
    # Dependency injection for testing
    _requeue_failed=requeue_failed_jobs,
    _claim_batch=claim_batch,
    _enrich_job=enrich_job,
    _mark_enriched=mark_enriched,
    _mark_failed=mark_failed,
    _count_remaining=count_remaining,
) -> EnrichmentBatchResult:
    """
    Claim one batch and enrich it.

    Queue transaction errors (requeue / claim) propagate to the caller.
    Per-job enrichment errors never do: the job is marked failed and the
    batch carries on.

    Args:
        db: Database session
        ctx: Per-invocation enrichment context
        batch_size: Max records to claim
        concurrency: Max jobs enriched at once
        max_retries: Attempts before a record becomes failed_permanent
        use_test_db: Whether using test database (for log prefix)
        batch_id: Log label (random if None)
        _*: Dependency injection for DB/enrichment operations (for testing)

    Returns:
        EnrichmentBatchResult with processed / enriched / failed / remaining
    """
    log = EnrichmentLogContext(batch_id or uuid.uuid4().hex[:8], use_test_db=use_test_db)

    requeued = _requeue_failed(db)
    if requeued:
        log.log_info(f"Requeued {requeued} failed jobs")

    records = _claim_batch(db, batch_size)
    if not records:
        remaining = _count_remaining(db)
        log.log_info(f"No pending enrichment jobs (remaining={remaining})")
        return EnrichmentBatchResult(remaining=remaining)

    claimed = [ClaimedJob.from_record(record) for record in records]
    log.log_info(f"Claimed {len(claimed)} jobs, enriching with concurrency={concurrency}")

    result = EnrichmentBatchResult(processed=len(claimed))
    queue: asyncio.Queue = asyncio.Queue()
    for item in claimed:
        queue.put_nowait(item)

    async def worker() -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            job_log = log.for_job(item.id)
            try:
                card = await _enrich_job(item.job, ctx)
            except Exception as e:
                result.failed += 1
                job_log.log_error(f"Enrichment failed for {item.job.company} / {item.job.role}: {e}")
                try:
                    _mark_failed(
                        db,
                        item.id,
                        str(e) or type(e).__name__,
                        max_retries=max_retries,
                        fallback_card=build_minimal_card(item.job),
                    )
                except Exception as mark_error:
                    # Left in processing; stuck-job detection picks it up
                    job_log.log_error(f"Could not mark job failed: {mark_error}")
                continue

            try:
                marked = _mark_enriched(db, item.id, card)
            except Exception as e:
                result.failed += 1
                job_log.log_error(f"Could not mark job enriched, left processing: {e}")
                continue

            if marked:
                result.enriched += 1
                job_log.log_info(f"Enriched {item.job.company} / {item.job.role}")
                schedule_photo_cleanup(ctx, item, card, job_log)
            else:
                job_log.log_warning("Record left processing before it could be marked enriched")

    workers = [worker() for _ in range(min(max(concurrency, 1), len(claimed)))]
    # Every worker finishes before an error surfaces, so none outlives the session or client
    for outcome in await asyncio.gather(*workers, return_exceptions=True):
        if isinstance(outcome, BaseException):
            raise outcome

    result.remaining = _count_remaining(db)
    log.log_info(
        f"Batch complete - processed={result.processed} enriched={result.enriched} "
        f"failed={result.failed} remaining={result.remaining}"
    )
    return result


async def run_enrichment_batch(
    db: Session,
    settings=app_settings,
    batch_size: int = None,
    use_test_db: bool = False,
    _open_context=open_enrichment_context,
    _process_batch=process_enrichment_batch,
) -> EnrichmentBatchResult:
    """
    Open a fresh enrichment context (client, caches, limiters, headshot pool)
    and process one batch with the configured tunables.
    """
    async with _open_context(settings) as ctx:
        return await _process_batch(
            db,
            ctx,
            batch_size=batch_size or settings.ENRICH_BATCH_SIZE,
            concurrency=settings.ENRICH_CONCURRENCY,
            max_retries=settings.ENRICH_MAX_RETRIES,
            use_test_db=use_test_db,
        )


# =============================================================================
# Lambda Handler
# =============================================================================

def handler(event: dict, context) -> dict:
    """
    Lambda handler for the enrichment batch worker.

    Args:
        event: {
            batch_size: int  // Optional
            use_test_db: bool  // Optional: when true, uses TEST_DATABASE_URL
        }
        context: Lambda context (unused)

    Returns:
        {processed, enriched, failed, remaining} or {error}
    """
    event = event or {}
    use_test_db = event.get("use_test_db", False)
    batch_size = event.get("batch_size")

    if use_test_db:
        logger.info("[EnrichmentWorker] Using TEST database")
    db = SessionLocal(use_test_db=use_test_db)

    try:
        result = asyncio.run(run_enrichment_batch(db, batch_size=batch_size, use_test_db=use_test_db))
        return result.to_dict()

    except Exception as e:
        logger.exception(f"[EnrichmentWorker] Worker error: {e}")
        return {"error": str(e)}

    finally:
        db.close()
