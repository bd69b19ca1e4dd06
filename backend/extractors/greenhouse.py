"""
Greenhouse Job Extractor

API: https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true
Public job boards, no key. One request per company board; a failing board
is logged and skipped without affecting the others.

Sample job:
{
  "id": 4001218008,
  "title": "Software Engineer, Infrastructure",
  "location": {"name": "San Francisco, CA"},
  "content": "&lt;p&gt;...&lt;/p&gt;",
  "departments": [{"name": "Engineering"}],
  "offices": [{"name": "SF"}],
  "absolute_url": "https://boards.greenhouse.io/stripe/jobs/4001218008",
  "updated_at": "2024-05-01T10:00:00-04:00"
}
"""

import asyncio
import html
import logging
import re
from typing import List

from .base_extractor import BaseJobExtractor
from .utils import (
    clean_description,
    dedupe_tags,
    extract_keyword_tags,
    logo_url_for_company,
    now_iso,
)
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)

GREENHOUSE_BOARDS = [
    "stripe", "airbnb", "figma", "notion", "vercel", "linear",
    "anthropic", "openai", "github", "dropbox", "zoom", "twilio",
    "datadog", "elastic", "hashicorp", "mongodb", "confluent",
    "cloudflare", "fastly", "pagerduty", "sendgrid", "segment",
]

SPECIAL_COMPANY_NAMES = {
    "openai": "OpenAI",
    "github": "GitHub",
    "pagerduty": "PagerDuty",
    "sendgrid": "SendGrid",
    "hashicorp": "HashiCorp",
    "mongodb": "MongoDB",
    "cloudflare": "Cloudflare",
    "datadog": "Datadog",
}

ENGINEERING_TITLE = re.compile(
    r"engineer|developer|software|\bsre\b|devops|full[- ]?stack|front[- ]?end|back[- ]?end|"
    r"platform|infrastructure|data scientist|machine learning|\bml\b|security engineer|cloud|"
    r"architect|\bcto\b|vp.*eng",
    re.IGNORECASE,
)
ENGINEERING_DEPARTMENT = re.compile(
    r"engineer|product|technology|development|data|infrastructure|platform|security",
    re.IGNORECASE,
)


def format_company_name(slug: str) -> str:
    return SPECIAL_COMPANY_NAMES.get(slug, slug[:1].upper() + slug[1:])


def is_engineering_role(posting: dict) -> bool:
    if ENGINEERING_TITLE.search(posting.get("title") or ""):
        return True
    return any(
        ENGINEERING_DEPARTMENT.search(dept.get("name") or "")
        for dept in posting.get("departments") or []
    )


class GreenhouseExtractor(BaseJobExtractor):
    """Engineering jobs from a fixed list of Greenhouse boards."""

    NAME = "greenhouse"
    API_URL = "https://boards-api.greenhouse.io/v1/boards"

    def __init__(self, *args, boards: List[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.boards = boards or GREENHOUSE_BOARDS

    async def fetch_jobs(self) -> List[NormalizedJob]:
        results = await asyncio.gather(
            *(self._fetch_board(slug) for slug in self.boards),
            return_exceptions=True,
        )

        jobs: List[NormalizedJob] = []
        failed = 0
        for slug, result in zip(self.boards, results):
            if isinstance(result, Exception):
                failed += 1
                logger.warning(f"Greenhouse board {slug} failed: {type(result).__name__}: {result}")
                continue
            jobs.extend(result)

        logger.info(f"Greenhouse returned {len(jobs)} engineering postings ({failed}/{len(self.boards)} boards failed)")
        return jobs

    async def _fetch_board(self, slug: str) -> List[NormalizedJob]:
        payload = await self.get_json(
            f"{self.API_URL}/{slug}/jobs",
            params={"content": "true"},
            timeout=15.0,
        )
        company = format_company_name(slug)
        return [
            self._normalize(posting, company)
            for posting in payload.get("jobs") or []
            if posting.get("title") and is_engineering_role(posting)
        ]

    def _normalize(self, posting: dict, company: str) -> NormalizedJob:
        offices = posting.get("offices") or []
        location = (
            (posting.get("location") or {}).get("name")
            or (offices[0].get("name") if offices else None)
            or "Remote"
        )
        departments = [d.get("name") for d in posting.get("departments") or []]
        # Greenhouse returns the content HTML entity-encoded
        content = html.unescape(posting.get("content") or "")

        return self.build_job(
            company=company,
            role=posting["title"].strip(),
            location=" ".join(location.split()),
            description=clean_description(content),
            tags=dedupe_tags(departments + extract_keyword_tags(posting["title"])),
            company_logo=logo_url_for_company(company),
            source_id=f"greenhouse-{posting.get('id')}",
            source_url=posting.get("absolute_url"),
            apply_url=posting.get("absolute_url"),
            created_at=posting.get("updated_at") or now_iso(),
        )
