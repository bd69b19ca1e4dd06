"""
Scrape Worker

Invoked by the cron endpoint (POST /api/cron/scrape) or directly as a Lambda
on a schedule.

Event format:
{
    "use_test_db": false  // Optional: when true, uses TEST_DATABASE_URL (for local dev)
}

Workflow:
1. Run every enabled source adapter concurrently (a failing adapter only
   contributes an error string)
2. Deduplicate against the trailing window and persist new postings,
   already queued for enrichment
3. Return {fetched, new_jobs, duplicates, errors, by_source}

Log Format:
All logs use prefix [ScrapeWorker:run=<label>] for CloudWatch filtering.
"""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from config.settings import settings as app_settings
from db.jobs_service import persist_new_jobs
from db.session import SessionLocal
from sourcing.extractor_utils import collect_errors, collect_jobs, run_all_adapters
from sourcing.models import ScrapeResult
from utils.worker_logging import ScrapeLogContext

logger = logging.getLogger()
logger.setLevel(logging.INFO)


async def run_scrape(
    db: Session,
    settings=app_settings,
    use_test_db: bool = False,
    run_label: str = None,
    # Dependency injection for testing
    _run_adapters=run_all_adapters,
    _persist_new_jobs=persist_new_jobs,
) -> ScrapeResult:
    """
    Fetch from all enabled adapters and persist what is new.

    Args:
        db: Database session
        settings: Settings with source keys and DEDUP_WINDOW_DAYS
        use_test_db: Whether using test database (for log prefix)
        run_label: Log label (timestamp if None)
        _*: Dependency injection for adapters/DB (for testing)

    Returns:
        ScrapeResult
    """
    label = run_label or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    log = ScrapeLogContext(label, use_test_db=use_test_db)
    log.log_info("Starting scrape")

    adapter_results = await _run_adapters(settings)
    for adapter_result in adapter_results:
        if adapter_result.ok:
            log.log_info(f"{adapter_result.source}: {len(adapter_result.jobs)} jobs")
        else:
            log.log_warning(f"{adapter_result.source} failed: {adapter_result.error}")

    jobs = collect_jobs(adapter_results)
    dedup = _persist_new_jobs(db, jobs, window_days=settings.DEDUP_WINDOW_DAYS)

    result = ScrapeResult(
        fetched=dedup.fetched,
        new_jobs=dedup.new,
        duplicates=dedup.duplicates,
        errors=collect_errors(adapter_results),
        by_source=dedup.new_by_source,
    )

    log.log_info(
        f"Scrape complete - fetched={result.fetched} new={result.new_jobs} "
        f"duplicates={result.duplicates} errors={len(result.errors)}"
    )
    return result


# =============================================================================
# Lambda Handler
# =============================================================================

def handler(event: dict, context) -> dict:
    """
    Lambda handler for the scrape worker.

    Args:
        event: {use_test_db: bool}  // Optional
        context: Lambda context (unused)

    Returns:
        ScrapeResult as dict, or {error}
    """
    event = event or {}
    use_test_db = event.get("use_test_db", False)

    if use_test_db:
        logger.info("[ScrapeWorker] Using TEST database")
    db = SessionLocal(use_test_db=use_test_db)

    try:
        result = asyncio.run(run_scrape(db, use_test_db=use_test_db))
        return result.to_dict()

    except Exception as e:
        logger.exception(f"[ScrapeWorker] Worker error: {e}")
        return {"error": str(e)}

    finally:
        db.close()
