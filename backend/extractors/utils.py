"""
Helpers shared by all source adapters: description cleanup, salary and
location formatting, keyword tags and logo URLs.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from enrichment.logos import clearbit_logo_url, guess_company_domain
from utils.text import html_to_text, strip_html, truncate

DESCRIPTION_MAX_LENGTH = 2000
MAX_TAGS = 6

# Vocabulary for tags matched in titles / descriptions
TAG_KEYWORDS: List[str] = [
    "React", "Node", "Python", "Java", "TypeScript", "JavaScript",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Go", "Rust",
    "C#", ".NET", "PHP", "Ruby", "Swift", "Kotlin", "SQL",
    "DevOps", "Full Stack", "Frontend", "Backend", "Senior", "Junior",
    "Lead", "Staff", "Principal", "Remote", "Machine Learning", "AI",
    "iOS", "Android", "Data", "Security", "Infrastructure", "Platform",
]

_REMOTE_ONLY = re.compile(r"^(?:remote|worldwide|anywhere|work from home|wfh)$", re.IGNORECASE)
_REMOTE_REGION = re.compile(r"^remote\s*[-–—/]\s*(.+)$", re.IGNORECASE)


def clean_description(raw: Optional[str], max_length: int = DESCRIPTION_MAX_LENGTH) -> Optional[str]:
    """HTML -> line-preserving text, truncated at a word boundary. None for empty input."""
    text = html_to_text(raw)
    if not text:
        return None
    return truncate(text, max_length)


def format_salary(
    minimum: Optional[float],
    maximum: Optional[float],
    period: Optional[str] = None,
    currency: str = "$",
    suffix: Optional[bool] = True,
) -> Optional[str]:
    """
    Format a min/max salary.

    Example:
        format_salary(80000, 120000) -> "$80k - $120k/yr"
        format_salary(80000, None) -> "$80k+/yr"
        format_salary(None, 120000) -> "Up to $120k/yr"
        format_salary(25, 40, period="hour") -> "$25 - $40/hr"
        format_salary(40000, 60000, currency="£", suffix=False) -> "£40k - £60k"
    """
    if not minimum and not maximum:
        return None

    hourly = (period or "").lower() in ("hour", "hourly")
    tail = ("/hr" if hourly else "/yr") if suffix else ""

    def fmt(value: float) -> str:
        if not hourly and value >= 1000:
            return f"{currency}{round(value / 1000)}k"
        return f"{currency}{value:g}"

    if minimum and maximum:
        return f"{fmt(minimum)} - {fmt(maximum)}{tail}"
    if minimum:
        return f"{fmt(minimum)}+{tail}"
    return f"Up to {fmt(maximum)}{tail}"


def extract_keyword_tags(text: str, vocabulary: Iterable[str] = TAG_KEYWORDS, limit: Optional[int] = None) -> List[str]:
    """
    Vocabulary terms found in text as whole words, in vocabulary order.

    Word-boundary matching keeps "Go" out of "Google" and "Java" out of "JavaScript".
    """
    tags: List[str] = []
    for keyword in vocabulary:
        if re.search(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", text or "", re.IGNORECASE):
            tags.append(keyword)
            if limit and len(tags) >= limit:
                break
    return tags


def dedupe_tags(tags: Iterable[Optional[str]], limit: int = MAX_TAGS) -> List[str]:
    """Drop empties and case-insensitive duplicates, keep first spelling."""
    seen = set()
    result = []
    for tag in tags:
        if not tag:
            continue
        key = tag.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(tag.strip())
    return result[:limit]


def normalize_location(location: Optional[str], default: str = "Remote") -> str:
    """
    Collapse whitespace and unify remote labels.

    Example:
        "  worldwide " -> "Remote"
        "Remote - US" -> "Remote (US)"
    """
    loc = " ".join((location or "").split())
    if not loc:
        return default
    if _REMOTE_ONLY.match(loc):
        return "Remote"
    region = _REMOTE_REGION.match(loc)
    if region:
        return f"Remote ({region.group(1).strip()})"
    return loc


def logo_url_for_company(company: str) -> str:
    """Clearbit URL on the guessed company domain (verified later by the logo chain)."""
    return clearbit_logo_url(guess_company_domain(company))


def epoch_to_iso(value: Optional[float], milliseconds: bool = False) -> Optional[str]:
    if not value:
        return None
    seconds = value / 1000 if milliseconds else value
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = [
    "clean_description",
    "dedupe_tags",
    "epoch_to_iso",
    "extract_keyword_tags",
    "format_salary",
    "logo_url_for_company",
    "normalize_location",
    "now_iso",
    "strip_html",
    "truncate",
]
