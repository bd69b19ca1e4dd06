"""
Professional email discovery via Hunter.io.

Strategy:
1. Person known (e.g. from ProxyCurl): email-finder, accepted at score >= 50
2. Company only: domain-search, preferring
   a. generic address in an HR/recruiting department
   b. any generic address
   c. highest-confidence personal address in an HR/recruiting department
3. careers@{guessed-domain}

Every function degrades to the guessed address when HUNTER_API_KEY is
missing or a call fails. Error strings are sanitized before logging since
Hunter takes the key as a query parameter.
"""

import logging
import re
from typing import Optional, TYPE_CHECKING

import httpx

from enrichment.http_utils import sanitize_error
from enrichment.logos import guess_company_domain
from enrichment.rate_limiter import RateLimitError
from enrichment.types import EnrichmentSource, ResolvedValue

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

HUNTER_BASE = "https://api.hunter.io/v2"
HUNTER_TIMEOUT = 8.0
MIN_CONFIDENCE = 50

HR_DEPARTMENT = re.compile(r"^(hr|human.?resources|recruiting|talent)$", re.IGNORECASE)

GUESSED_EMAIL_PREFIXES = ("careers@", "recruiting@")


def guess_company_email(company: str, mailbox: str = "careers") -> str:
    return f"{mailbox}@{guess_company_domain(company)}"


def is_guessed_email(email: str) -> bool:
    return email.startswith(GUESSED_EMAIL_PREFIXES)


async def _hunter_get(ctx: "EnrichmentContext", endpoint: str, params: dict) -> dict:
    async def request() -> httpx.Response:
        response = await ctx.client.get(
            f"{HUNTER_BASE}/{endpoint}",
            params={"api_key": ctx.hunter_api_key, **params},
            timeout=HUNTER_TIMEOUT,
        )
        response.raise_for_status()
        return response

    limiter = ctx.limiters.get("hunter")
    response = await (limiter.with_retry(request) if limiter else request())
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected Hunter {endpoint} response")
    return payload


def pick_domain_search_email(emails: list[dict]) -> Optional[str]:
    """Apply the domain-search priority order to Hunter's email list."""
    def is_hr(entry: dict) -> bool:
        return bool(entry.get("department")) and bool(HR_DEPARTMENT.match(entry["department"]))

    for entry in emails:
        if entry.get("type") == "generic" and is_hr(entry) and entry.get("value"):
            return entry["value"]

    for entry in emails:
        if entry.get("type") == "generic" and entry.get("value"):
            return entry["value"]

    hr_personal = sorted(
        (entry for entry in emails if is_hr(entry) and entry.get("value")),
        key=lambda entry: entry.get("confidence") or 0,
        reverse=True,
    )
    if hr_personal:
        return hr_personal[0]["value"]
    return None


async def find_person_email(
    ctx: "EnrichmentContext",
    first_name: str,
    last_name: str,
    company: str,
) -> Optional[str]:
    """Hunter email-finder; None when the key is missing, confidence is low or the call fails."""
    if not ctx.hunter_api_key:
        logger.debug("Hunter API key not set, skipping person email lookup")
        return None

    try:
        payload = await _hunter_get(
            ctx,
            "email-finder",
            {"company": company, "first_name": first_name, "last_name": last_name},
        )
    except (httpx.HTTPError, RateLimitError, ValueError) as e:
        logger.warning(f"Hunter email-finder failed for {company}: {sanitize_error(e)}")
        return None

    data = payload.get("data") or {}
    email, score = data.get("email"), data.get("score")
    if email and score is not None and score >= MIN_CONFIDENCE:
        logger.info(f"Found person email via Hunter for {company} (score={score})")
        return email

    logger.debug(f"Hunter email-finder returned low-confidence or no result for {company} (score={score})")
    return None


async def find_company_hr_email(ctx: "EnrichmentContext", company: str) -> ResolvedValue:
    """Company-level HR address; always resolves (guessed careers@ address last)."""
    guessed = ResolvedValue(guess_company_email(company), EnrichmentSource.PLACEHOLDER)

    if not ctx.hunter_api_key:
        logger.debug("Hunter API key not set, using guessed HR email")
        return guessed

    try:
        payload = await _hunter_get(ctx, "domain-search", {"company": company, "limit": "10"})
    except (httpx.HTTPError, RateLimitError, ValueError) as e:
        logger.warning(f"Hunter domain-search failed for {company}: {sanitize_error(e)}")
        return guessed

    emails = (payload.get("data") or {}).get("emails") or []
    email = pick_domain_search_email([entry for entry in emails if isinstance(entry, dict)])
    if email:
        logger.info(f"Found HR email via Hunter domain-search for {company}")
        return ResolvedValue(email, EnrichmentSource.HUNTER)

    logger.debug(f"Hunter domain-search returned no suitable emails for {company} ({len(emails)} total)")
    return guessed


async def resolve_hr_email(
    ctx: "EnrichmentContext",
    company: str,
    person_name: Optional[str] = None,
) -> ResolvedValue:
    """
    Resolve the HR contact email.

    Args:
        ctx: Per-invocation enrichment context
        company: Company name
        person_name: Real contact name, when one was found

    Returns:
        ResolvedValue(email, source); source is "placeholder" for guessed addresses
    """
    parts = (person_name or "").split()
    cache_key = f"{company.strip().lower()}::{' '.join(parts).lower()}"
    cached = ctx.email_cache.get(cache_key)
    if cached is not None:
        return cached

    resolved: Optional[ResolvedValue] = None
    if len(parts) >= 2:
        email = await find_person_email(ctx, parts[0], parts[-1], company)
        if email:
            resolved = ResolvedValue(email, EnrichmentSource.HUNTER)

    if resolved is None:
        resolved = await find_company_hr_email(ctx, company)
        if is_guessed_email(resolved.value):
            resolved = ResolvedValue(resolved.value, EnrichmentSource.PLACEHOLDER)

    ctx.email_cache.set(cache_key, resolved)
    return resolved
