"""
Reed Job Extractor

API: https://www.reed.co.uk/api/1.0/search
Requires REED_API_KEY, sent as HTTP Basic auth with the key as username and
an empty password. Two keyword searches, de-duplicated by jobId. Salaries
are in GBP.
"""

import logging
from typing import List

import httpx

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

RESULTS_PER_QUERY = 50
SEARCH_KEYWORDS = ["software developer", "software engineer"]


class ReedExtractor(BaseJobExtractor):
    """UK software jobs from Reed."""

    NAME = "reed"
    CONFIG_KEYS = ("REED_API_KEY",)
    API_URL = "https://www.reed.co.uk/api/1.0/search"

    async def fetch_jobs(self) -> List[NormalizedJob]:
        auth = httpx.BasicAuth(self.setting("REED_API_KEY"), "")
        postings: List[dict] = []
        seen_ids = set()

        for keywords in SEARCH_KEYWORDS:
            payload = await self.get_json(
                self.API_URL,
                params={"keywords": keywords, "resultsToTake": str(RESULTS_PER_QUERY)},
                auth=auth,
                timeout=15.0,
            )
            for posting in payload.get("results") or []:
                job_id = str(posting.get("jobId", ""))
                if not job_id or job_id in seen_ids or not posting.get("jobTitle"):
                    continue
                seen_ids.add(job_id)
                postings.append(posting)

        logger.info(f"Reed returned {len(postings)} unique postings")
        return [self._normalize(p) for p in postings]

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = (posting.get("employerName") or "Unknown").strip()
        title = posting["jobTitle"].strip()
        raw_description = posting.get("jobDescription") or ""

        return self.build_job(
            company=company,
            role=title,
            location=(posting.get("locationName") or "United Kingdom").strip(),
            salary=format_salary(
                posting.get("minimumSalary"),
                posting.get("maximumSalary"),
                currency="£",
                suffix=False,
            ),
            description=clean_description(raw_description),
            tags=dedupe_tags(extract_keyword_tags(f"{title} {raw_description}")),
            company_logo=logo_url_for_company(company),
            source_id=str(posting["jobId"]),
            source_url=posting.get("jobUrl"),
            apply_url=posting.get("jobUrl"),
            created_at=posting.get("date") or now_iso(),
        )
