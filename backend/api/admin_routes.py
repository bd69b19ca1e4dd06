"""
Admin endpoints for the enrichment queue.

Endpoints:
- GET  /api/admin/jobs/enrich   Queue stats and stuck jobs
- POST /api/admin/jobs/enrich   One of:
    {"job_id": 42}   queue a single job
    {"all": true}    queue every never-queued job
    {"reset": true}  move every failed job back to pending

Requires Authorization: Bearer <CRON_SECRET>.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.cron_routes import get_pipeline_db
from auth.dependencies import verify_cron_secret
from config.settings import settings
from db.enrichment_queue import (
    enqueue_job,
    get_enrichment_stats,
    get_stuck_jobs,
    queue_all_unenriched_jobs,
    requeue_failed_jobs,
)
from db.jobs_service import get_job_by_id

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


# =============================================================================
# Pydantic Models
# =============================================================================

class EnrichActionRequest(BaseModel):
    """Exactly one action is honored, checked in order job_id, all, reset."""
    job_id: Optional[int] = None
    all: Optional[bool] = None
    reset: Optional[bool] = None


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/admin/jobs/enrich")
async def get_enrichment_queue(db: Session = Depends(get_pipeline_db)):
    """
    Current queue stats and records stuck in processing.

    Returns:
        {stats: {none, pending, processing, enriched, failed, failed_permanent, total},
         stuck: [{id, company, role, enrichment_status, enrichment_started_at}]}
    """
    return {
        "stats": get_enrichment_stats(db),
        "stuck": get_stuck_jobs(db, older_than_minutes=settings.STUCK_JOB_MINUTES),
    }


@router.post("/admin/jobs/enrich")
async def trigger_enrichment_action(
    request: EnrichActionRequest,
    db: Session = Depends(get_pipeline_db),
):
    """
    Queue a job, queue all unenriched jobs, or reset failed jobs.

    Raises:
        HTTPException 404: job_id does not exist
        HTTPException 400: no action given
    """
    if request.job_id is not None:
        if get_job_by_id(db, request.job_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Job not found",
            )
        queued = enqueue_job(db, request.job_id)
        return {
            "action": "enqueue_single",
            "job_id": request.job_id,
            "queued": queued,
            "stats": get_enrichment_stats(db),
        }

    if request.all is True:
        queued = queue_all_unenriched_jobs(db)
        return {
            "action": "enqueue_all",
            "queued": queued,
            "stats": get_enrichment_stats(db),
        }

    if request.reset is True:
        reset_count = requeue_failed_jobs(db)
        return {
            "action": "reset_failed",
            "reset": reset_count,
            "stats": get_enrichment_stats(db),
        }

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid request body. Provide {job_id}, {all: true}, or {reset: true}",
    )
