"""
Adzuna Job Extractor

API: https://api.adzuna.com/v1/api/jobs/us/search/{page}
Requires ADZUNA_APP_ID and ADZUNA_API_KEY. Fetches two pages of 50 IT jobs
sorted by date. Requests go through the adzuna limiter (10/min, 250/day).
"""

import logging
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import (
    clean_description,
    dedupe_tags,
    extract_keyword_tags,
    format_salary,
    logo_url_for_company,
    now_iso,
)
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)

COUNTRY = "us"
RESULTS_PER_PAGE = 50
MAX_PAGES = 2


class AdzunaExtractor(BaseJobExtractor):
    """US IT jobs from Adzuna."""

    NAME = "adzuna"
    CONFIG_KEYS = ("ADZUNA_APP_ID", "ADZUNA_API_KEY")
    API_URL = "https://api.adzuna.com/v1/api/jobs"

    async def fetch_jobs(self) -> List[NormalizedJob]:
        jobs: List[NormalizedJob] = []
        for page in range(1, MAX_PAGES + 1):
            payload = await self.get_json(
                f"{self.API_URL}/{COUNTRY}/search/{page}",
                params={
                    "app_id": self.setting("ADZUNA_APP_ID"),
                    "app_key": self.setting("ADZUNA_API_KEY"),
                    "results_per_page": str(RESULTS_PER_PAGE),
                    "category": "it-jobs",
                    "sort_by": "date",
                },
                timeout=15.0,
            )
            results = payload.get("results") or []
            jobs.extend(self._normalize(r) for r in results if r.get("title"))
            if len(results) < RESULTS_PER_PAGE:
                break

        logger.info(f"Adzuna returned {len(jobs)} postings")
        return jobs

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = ((posting.get("company") or {}).get("display_name") or "Unknown").strip()
        category = (posting.get("category") or {}).get("tag") or "it-jobs"
        title = posting["title"].strip()

        return self.build_job(
            company=company,
            role=title,
            location=((posting.get("location") or {}).get("display_name") or "Unknown").strip(),
            salary=format_salary(posting.get("salary_min"), posting.get("salary_max")),
            description=clean_description(posting.get("description")),
            tags=dedupe_tags([category] + extract_keyword_tags(title)),
            company_logo=logo_url_for_company(company),
            source_id=str(posting.get("id", "")),
            source_url=posting.get("redirect_url"),
            apply_url=posting.get("redirect_url"),
            created_at=posting.get("created") or now_iso(),
        )
