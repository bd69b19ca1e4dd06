"""
The Muse Job Extractor

API: https://www.themuse.com/api/public/jobs?category=Engineering&page=N
Keyless; MUSE_API_KEY only raises the quota. Pages are 0-based and the
response reports page_count, so paging stops at the last page.

Company data carries a size bucket (mapped to a team-size label) and a
perks list (used as benefits).
"""

import logging
from typing import List, Optional

from .base_extractor import BaseJobExtractor
from .utils import clean_description, dedupe_tags, logo_url_for_company, now_iso
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)

COMPANY_SIZE_LABELS = {
    "1-10": "Small startup",
    "11-50": "Small startup",
    "51-200": "Growing company",
    "201-500": "Mid-size",
    "501-1000": "Mid-size",
    "1001-5000": "Large",
    "5001-10000": "Enterprise",
    "10001+": "Enterprise",
}


def map_company_size(size: Optional[str]) -> Optional[str]:
    """
    The Muse size bucket -> human label (unknown buckets pass through).

    Example:
        "51-200" -> "Growing company"
    """
    if not size:
        return None
    return COMPANY_SIZE_LABELS.get(size.strip(), size.strip())


class TheMuseExtractor(BaseJobExtractor):
    """Engineering jobs from The Muse."""

    NAME = "themuse"
    API_URL = "https://www.themuse.com/api/public/jobs"
    PAGES_TO_FETCH = 5

    async def fetch_jobs(self) -> List[NormalizedJob]:
        api_key = self.setting("MUSE_API_KEY")
        jobs: List[NormalizedJob] = []

        for page in range(self.PAGES_TO_FETCH):
            params = {"category": "Engineering", "page": str(page)}
            if api_key:
                params["api_key"] = api_key

            try:
                payload = await self.get_json(self.API_URL, params=params, timeout=15.0)
            except Exception as e:
                # First page failing means the source is down; later pages keep what was fetched
                if page == 0:
                    raise
                logger.warning(f"The Muse page {page} failed, keeping {len(jobs)} postings: {type(e).__name__}: {e}")
                break

            for posting in payload.get("results") or []:
                try:
                    job = self._normalize(posting)
                except (AttributeError, KeyError, TypeError) as e:
                    logger.warning(f"Skipping malformed The Muse posting: {type(e).__name__}: {e}")
                    continue
                if job is not None:
                    jobs.append(job)

            page_count = payload.get("page_count") or 0
            if page >= page_count - 1:
                break

        logger.info(f"The Muse returned {len(jobs)} postings")
        return jobs

    def _normalize(self, posting: dict) -> Optional[NormalizedJob]:
        company_data = posting.get("company") or {}
        company = (company_data.get("name") or "").strip()
        role = (posting.get("name") or "").strip()
        if not company or not role:
            return None

        locations = posting.get("locations") or []
        first_location = locations[0] if isinstance(locations, list) and locations else None
        location_name = (first_location.get("name") or "").strip() if isinstance(first_location, dict) else ""
        is_remote = not location_name or "flexible" in location_name.lower()

        perks = [p["name"] for p in company_data.get("perks") or [] if p.get("name")]
        industries = company_data.get("industries") or []
        levels = posting.get("levels") or []
        team_size = map_company_size(company_data.get("size"))

        tags = [
            industries[0].get("name") if industries else None,
            levels[0].get("short_name") if levels else None,
            team_size,
            *perks,
        ]

        landing_page = (posting.get("refs") or {}).get("landing_page")
        return self.build_job(
            company=company,
            role=role,
            location="Remote" if is_remote else location_name,
            description=clean_description(posting.get("contents")),
            benefits=perks,
            tags=dedupe_tags(tags),
            team_size=team_size,
            company_logo=company_data.get("logo") or logo_url_for_company(company),
            source_id=str(posting.get("id", "")),
            source_url=landing_page,
            apply_url=landing_page,
            created_at=posting.get("publication_date") or now_iso(),
        )
