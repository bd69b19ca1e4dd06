"""
JSearch Job Extractor (RapidAPI)

API: https://jsearch.p.rapidapi.com/search
Aggregates Google Jobs, Indeed, LinkedIn and Glassdoor. Requires RAPIDAPI_KEY.
Runs four searches, de-duplicates by job_id and maps job_highlights to
requirements/benefits. Requests go through the jsearch limiter (1/s).
"""

import logging
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import clean_description, dedupe_tags, format_salary, logo_url_for_company, now_iso
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)

SEARCH_QUERIES = [
    "software engineer",
    "frontend engineer",
    "backend engineer",
    "full stack engineer",
]


def build_location(posting: dict) -> str:
    if posting.get("job_is_remote"):
        return "Remote"
    parts = [posting.get("job_city"), posting.get("job_state")]
    parts = [part.strip() for part in parts if part and part.strip()]
    return ", ".join(parts) if parts else "Remote"


class JSearchExtractor(BaseJobExtractor):
    """Aggregated job-board results from JSearch."""

    NAME = "jsearch"
    CONFIG_KEYS = ("RAPIDAPI_KEY",)
    API_URL = "https://jsearch.p.rapidapi.com/search"
    API_HOST = "jsearch.p.rapidapi.com"

    def get_headers(self):
        headers = super().get_headers()
        headers.update({
            "X-RapidAPI-Key": self.setting("RAPIDAPI_KEY"),
            "X-RapidAPI-Host": self.API_HOST,
        })
        return headers

    async def fetch_jobs(self) -> List[NormalizedJob]:
        postings: List[dict] = []
        seen_ids = set()

        # Sequential: the limiter allows one request per second anyway
        for query in SEARCH_QUERIES:
            payload = await self.get_json(
                self.API_URL,
                params={"query": query, "page": "1", "num_pages": "1", "date_posted": "month"},
                timeout=15.0,
            )
            for posting in payload.get("data") or []:
                job_id = posting.get("job_id")
                if not job_id or job_id in seen_ids:
                    continue
                if not posting.get("employer_name") or not posting.get("job_title"):
                    continue
                seen_ids.add(job_id)
                postings.append(posting)

        logger.info(f"JSearch returned {len(postings)} unique postings")
        return [self._normalize(p) for p in postings]

    def _normalize(self, posting: dict) -> NormalizedJob:
        company = posting["employer_name"].strip()
        highlights = posting.get("job_highlights") or {}
        return self.build_job(
            company=company,
            role=posting["job_title"].strip(),
            location=build_location(posting),
            salary=format_salary(
                posting.get("job_min_salary"),
                posting.get("job_max_salary"),
                period=posting.get("job_salary_period"),
            ),
            description=clean_description(posting.get("job_description")),
            requirements=list(highlights.get("Qualifications") or []),
            benefits=list(highlights.get("Benefits") or []),
            tags=dedupe_tags(posting.get("job_required_skills") or []),
            company_logo=posting.get("employer_logo") or logo_url_for_company(company),
            source_id=posting["job_id"],
            source_url=posting.get("job_apply_link"),
            apply_url=posting.get("job_apply_link"),
            created_at=posting.get("job_posted_at_datetime_utc") or now_iso(),
        )
