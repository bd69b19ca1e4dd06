"""
Arbeitnow Job Extractor

API: https://www.arbeitnow.com/api/job-board-api (public, no key)
Data format: {"data": [job, ...]} with created_at as epoch seconds
"""

import logging
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import (
    clean_description,
    dedupe_tags,
    epoch_to_iso,
    logo_url_for_company,
    now_iso,
)
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)


class ArbeitnowExtractor(BaseJobExtractor):
    """European and remote jobs from Arbeitnow (keyless)."""

    NAME = "arbeitnow"
    API_URL = "https://www.arbeitnow.com/api/job-board-api"

    async def fetch_jobs(self) -> List[NormalizedJob]:
        payload = await self.get_json(self.API_URL, timeout=15.0)
        postings = payload.get("data") or []
        postings = [p for p in postings if p.get("company_name") and p.get("title")]
        logger.info(f"Arbeitnow returned {len(postings)} postings")

        return [self._normalize(p) for p in postings[:self.max_jobs]]

    @staticmethod
    def _location(posting: dict) -> str:
        location = " ".join((posting.get("location") or "").split())
        if posting.get("remote"):
            return f"{location or 'Remote'} (Remote)"
        return location or "Unknown"

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = posting["company_name"].strip()
        tags = list(posting.get("tags") or []) + list(posting.get("job_types") or [])
        return self.build_job(
            company=company,
            role=posting["title"].strip(),
            location=self._location(posting),
            description=clean_description(posting.get("description")),
            tags=dedupe_tags(tags),
            company_logo=logo_url_for_company(company),
            source_id=posting.get("slug"),
            source_url=posting.get("url"),
            apply_url=posting.get("url"),
            created_at=epoch_to_iso(posting.get("created_at")) or now_iso(),
        )
