"""
Lever Job Extractor

API: https://api.lever.co/v0/postings/{slug}?mode=json&limit=50
Public postings, no key. One request per company; failures are isolated
per company. Requirements come from the posting's "lists" section whose
heading mentions requirements or qualifications.
"""

import asyncio
import logging
import re
from typing import List, Optional

from .base_extractor import BaseJobExtractor
from .utils import (
    clean_description,
    dedupe_tags,
    epoch_to_iso,
    extract_keyword_tags,
    logo_url_for_company,
    now_iso,
    strip_html,
    truncate,
)
from sourcing.models import NormalizedJob

logger = logging.getLogger(__name__)

LEVER_COMPANIES = [
    "netflix", "spotify", "square", "coinbase", "robinhood",
    "brex", "plaid", "lattice", "gusto", "rippling", "deel",
    "remote", "mercury", "ramp", "scale", "weights-biases",
    "huggingface", "mistral", "cohere", "stability",
]

ENGINEERING_KEYWORDS = [
    "engineer", "developer", "software", "sre", "devops",
    "infrastructure", "platform", "backend", "frontend",
    "fullstack", "full-stack", "full stack", "data",
    "machine learning", "ml", "ai", "security",
]

TITLE_TAG_KEYWORDS = [
    "Senior", "Staff", "Principal", "Lead", "Junior", "Intern",
    "Frontend", "Backend", "Fullstack", "Full-Stack", "DevOps", "SRE",
    "Mobile", "iOS", "Android", "Data", "ML", "AI", "Security", "Platform",
    "Infrastructure", "Cloud",
]

_LIST_ITEM = re.compile(r"<li[^>]*>(.*?)</li>", re.IGNORECASE | re.DOTALL)
MAX_REQUIREMENTS = 10


def capitalize_slug(slug: str) -> str:
    """
    Example:
        "weights-biases" -> "Weights Biases"
    """
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def _keyword_pattern(keyword: str) -> str:
    # Short keywords ("ml", "ai", "sre") must be whole words; longer ones may be prefixes ("engineering")
    tail = r"\b" if len(keyword) <= 3 else ""
    return r"\b" + re.escape(keyword) + tail


ENGINEERING_PATTERN = re.compile("|".join(_keyword_pattern(kw) for kw in ENGINEERING_KEYWORDS), re.IGNORECASE)


def is_engineering_role(posting: dict) -> bool:
    categories = posting.get("categories") or {}
    fields = [categories.get("team"), categories.get("department"), posting.get("text")]
    return any(ENGINEERING_PATTERN.search(field or "") for field in fields)


def parse_requirements(lists: Optional[list]) -> List[str]:
    for section in lists or []:
        heading = (section.get("text") or "").lower()
        if "requirement" in heading or "qualification" in heading:
            items = [strip_html(item) for item in _LIST_ITEM.findall(section.get("content") or "")]
            return [item for item in items if item][:MAX_REQUIREMENTS]
    return []


class LeverExtractor(BaseJobExtractor):
    """Engineering jobs from a fixed list of Lever companies."""

    NAME = "lever"
    API_URL = "https://api.lever.co/v0/postings"

    def __init__(self, *args, companies: List[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.companies = companies or LEVER_COMPANIES

    async def fetch_jobs(self) -> List[NormalizedJob]:
        results = await asyncio.gather(
            *(self._fetch_company(slug) for slug in self.companies),
            return_exceptions=True,
        )

        jobs: List[NormalizedJob] = []
        for slug, result in zip(self.companies, results):
            if isinstance(result, Exception):
                logger.warning(f"Lever company {slug} failed: {type(result).__name__}: {result}")
                continue
            jobs.extend(result)

        logger.info(f"Lever returned {len(jobs)} engineering postings")
        return jobs

    async def _fetch_company(self, slug: str) -> List[NormalizedJob]:
        postings = await self.get_json(
            f"{self.API_URL}/{slug}",
            params={"mode": "json", "limit": "50"},
            timeout=15.0,
        )
        if not isinstance(postings, list):
            raise ValueError(f"Lever response for {slug} is not a list")

        company = capitalize_slug(slug)
        return [
            self._normalize(posting, company)
            for posting in postings
            if isinstance(posting, dict) and posting.get("text") and is_engineering_role(posting)
        ]

    def _normalize(self, posting: dict, company: str) -> NormalizedJob:
        categories = posting.get("categories") or {}
        if posting.get("description"):
            description = clean_description(posting["description"])
        else:
            plain = (posting.get("descriptionPlain") or "").strip()
            description = truncate(plain, 2000) if plain else None

        tags = [categories.get("team"), categories.get("department")]
        tags += extract_keyword_tags(posting["text"], TITLE_TAG_KEYWORDS)

        return self.build_job(
            company=company,
            role=posting["text"].strip(),
            location=" ".join((categories.get("location") or "").split()) or "Remote",
            description=description,
            requirements=parse_requirements(posting.get("lists")),
            tags=dedupe_tags(tags),
            company_logo=logo_url_for_company(company),
            source_id=posting.get("id"),
            source_url=posting.get("hostedUrl"),
            apply_url=posting.get("applyUrl") or posting.get("hostedUrl"),
            created_at=epoch_to_iso(posting.get("createdAt"), milliseconds=True) or now_iso(),
        )
