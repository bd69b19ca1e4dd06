"""
Remotive Job Extractor

API: https://remotive.com/api/remote-jobs?category=software-dev&limit=100
Every Remotive posting is remote; salary is a free-text string.
"""

import logging
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import clean_description, dedupe_tags, logo_url_for_company, now_iso
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)


class RemotiveExtractor(BaseJobExtractor):
    """Remote software-development jobs from Remotive (keyless)."""

    NAME = "remotive"
    API_URL = "https://remotive.com/api/remote-jobs"

    async def fetch_jobs(self) -> List[NormalizedJob]:
        payload = await self.get_json(
            self.API_URL,
            params={"category": "software-dev", "limit": "100"},
            timeout=15.0,
        )
        postings = payload.get("jobs") or []
        postings = [p for p in postings if p.get("company_name") and p.get("title")]
        logger.info(f"Remotive returned {len(postings)} postings")

        return [self._normalize(p) for p in postings]

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = posting["company_name"].strip()
        return self.build_job(
            company=company,
            role=posting["title"].strip(),
            location="Remote",
            salary=(posting.get("salary") or "").strip() or None,
            description=clean_description(posting.get("description")),
            tags=dedupe_tags(posting.get("tags") or []),
            company_logo=posting.get("company_logo") or logo_url_for_company(company),
            source_id=str(posting.get("id", "")),
            source_url=posting.get("url"),
            apply_url=posting.get("url"),
            created_at=posting.get("publication_date") or now_iso(),
        )
