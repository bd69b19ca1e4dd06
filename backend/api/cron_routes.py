"""
Cron endpoints for the pipeline.

Endpoints:
- POST /api/cron/scrape   Run all enabled adapters and persist new postings
- POST /api/cron/enrich   Claim and enrich one batch from the enrichment queue

Both require Authorization: Bearer <CRON_SECRET>.

Running locally:
    cd backend
    uvicorn main:app --reload
    curl -X POST -H "Authorization: Bearer $CRON_SECRET" localhost:8000/api/cron/enrich
"""

import logging
from typing import Generator

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from auth.dependencies import verify_cron_secret
from config.settings import settings
from db.session import SessionLocal
from workers.enrichment_worker import run_enrichment_batch
from workers.scrape_worker import run_scrape

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


def get_pipeline_db() -> Generator[Session, None, None]:
    """
    Database session dependency for cron/admin endpoints.

    A missing DATABASE_URL is a server misconfiguration (500), not a crash.
    """
    try:
        db = SessionLocal()
    except ValueError as e:
        logger.error(f"Database not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration",
        )
    try:
        yield db
    finally:
        db.close()


@router.post("/cron/enrich")
async def cron_enrich(db: Session = Depends(get_pipeline_db)):
    """
    Process one enrichment batch.

    Returns:
        {processed, enriched, failed, remaining}
    """
    logger.info("Starting enrichment cron")
    try:
        result = await run_enrichment_batch(db, settings)
    except Exception as e:
        logger.exception(f"Enrichment cron failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Enrichment batch failed",
        )

    logger.info(f"Enrichment cron complete: {result.to_dict()}")
    return result.to_dict()


@router.post("/cron/scrape")
async def cron_scrape(db: Session = Depends(get_pipeline_db)):
    """
    Run every enabled adapter and persist new postings.

    Returns:
        {success, fetched, new_jobs, duplicates, errors, by_source}
    """
    logger.info("Starting scrape cron")
    try:
        result = await run_scrape(db, settings)
    except Exception as e:
        logger.exception(f"Scrape cron failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Scrape failed",
        )

    return {"success": True, **result.to_dict()}
