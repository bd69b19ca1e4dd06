"""
RemoteOK Job Extractor

API: https://remoteok.com/api (public, no key)
Data format: JSON array; the first element is a legal notice, not a job

Sample job:
{
  "id": "123456",
  "company": "Acme",
  "company_logo": "https://remoteok.com/assets/img/jobs/acme.png",
  "position": "Senior Backend Engineer",
  "tags": ["python", "aws"],
  "description": "<p>...</p>",
  "location": "Worldwide",
  "salary_min": 120000,
  "salary_max": 160000,
  "date": "2024-05-01T10:00:00+00:00",
  "url": "https://remoteok.com/remote-jobs/123456"
}
"""

import logging
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import (
    clean_description,
    dedupe_tags,
    format_salary,
    logo_url_for_company,
    normalize_location,
    now_iso,
)
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)


class RemoteOKExtractor(BaseJobExtractor):
    """Remote jobs from RemoteOK (keyless, capped at max_jobs)."""

    NAME = "remoteok"
    API_URL = "https://remoteok.com/api"

    async def fetch_jobs(self) -> List[NormalizedJob]:
        raw = await self.get_json(self.API_URL, timeout=15.0)
        if not isinstance(raw, list):
            raise ValueError("RemoteOK response is not a list")

        postings = [item for item in raw[1:] if isinstance(item, dict)]
        postings = [p for p in postings if p.get("company") and p.get("position")]
        logger.info(f"RemoteOK returned {len(postings)} postings")

        return [self._normalize(p) for p in postings[:self.max_jobs]]

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = posting["company"].strip()
        return self.build_job(
            company=company,
            role=posting["position"].strip(),
            location=normalize_location(posting.get("location")),
            salary=format_salary(posting.get("salary_min"), posting.get("salary_max")),
            description=clean_description(posting.get("description")),
            tags=dedupe_tags(posting.get("tags") or []),
            company_logo=posting.get("company_logo") or logo_url_for_company(company),
            source_id=str(posting.get("id") or posting.get("slug") or ""),
            source_url=posting.get("url"),
            apply_url=posting.get("apply_url") or posting.get("url"),
            created_at=posting.get("date") or now_iso(),
        )
