"""
Hiring-manager and HR-contact resolution.

Real people come from ProxyCurl's company employee search (PROXYCURL_API_KEY);
otherwise a placeholder identity is used. Either way the photo goes through
the photo chain and the HR email through the email chain, so every field of
the resulting Manager / HRContact is populated.
"""

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import httpx

from enrichment.emails import resolve_hr_email
from enrichment.photos import resolve_person_photo
from enrichment.rate_limiter import RateLimitError
from enrichment.types import EnrichmentSource, HRContact, Manager, PersonLookup, ResolvedValue

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

PROXYCURL_SEARCH_URL = "https://nubela.co/proxycurl/api/linkedin/company/employees/search"
PROXYCURL_TIMEOUT = 10.0

MANAGER_KEYWORDS = (
    "engineering manager|engineering lead|vp engineering|cto|head of engineering|director of engineering"
)
HR_KEYWORDS = "recruiter|talent acquisition|people operations|hr manager|head of people"

PERSON_MANAGER = "manager"
PERSON_HR = "hr"

# Cached marker for "searched, nobody found" (the cache treats None as a miss)
_NOT_FOUND = False


@dataclass
class ManagerResolution:
    manager: Manager
    source: str
    photo_source: str


@dataclass
class HRResolution:
    hr: HRContact
    source: str
    photo_source: str
    email_source: str


def placeholder_manager_fields(company: str) -> dict:
    return {
        "name": "Hiring Manager",
        "title": f"Engineering Manager at {company}",
        "tagline": f"Building the future at {company}",
    }


def placeholder_hr_fields(company: str) -> dict:
    return {
        "name": f"{company} Recruiting",
        "title": f"Talent Acquisition at {company}",
    }


def _person_from_result(result: dict) -> Optional[PersonLookup]:
    profile = result.get("profile")
    if not isinstance(profile, dict):
        return None
    emails = profile.get("emails")
    email = emails[0] if isinstance(emails, list) and emails and isinstance(emails[0], str) else None
    return PersonLookup(
        name=profile.get("full_name") or "",
        title=profile.get("headline"),
        photo_url=profile.get("profile_pic_url"),
        linkedin_url=result.get("linkedin_profile_url"),
        email=email,
    )


async def search_employees(
    ctx: "EnrichmentContext",
    company: str,
    keyword_regex: str,
) -> Optional[PersonLookup]:
    """First ProxyCurl employee whose title matches keyword_regex, or None."""
    if not ctx.proxycurl_api_key:
        return None

    # Without enrich_profiles the search returns bare profile URLs and no profile
    params = {
        "company_name": company,
        "keyword_regex": keyword_regex,
        "page_size": "1",
        "enrich_profiles": "enrich",
    }

    async def request() -> httpx.Response:
        response = await ctx.client.get(
            PROXYCURL_SEARCH_URL,
            params=params,
            headers={"Authorization": f"Bearer {ctx.proxycurl_api_key}"},
            timeout=PROXYCURL_TIMEOUT,
        )
        response.raise_for_status()
        return response

    limiter = ctx.limiters.get("proxycurl")
    try:
        response = await (limiter.with_retry(request) if limiter else request())
        payload = response.json()
    except (httpx.HTTPError, RateLimitError, ValueError) as e:
        logger.warning(f"ProxyCurl search failed for {company} ({keyword_regex.split('|')[0]}...): {e}")
        return None

    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    return _person_from_result(results[0])


async def find_person(ctx: "EnrichmentContext", company: str, person_type: str) -> Optional[PersonLookup]:
    """Cached employee search keyed by "{company}::{type}"."""
    if not ctx.proxycurl_api_key:
        return None

    key = f"{company.strip().lower()}::{person_type}"
    cached = ctx.person_cache.get(key)
    if cached is not None:
        return cached or None

    keywords = MANAGER_KEYWORDS if person_type == PERSON_MANAGER else HR_KEYWORDS
    person = await search_employees(ctx, company, keywords)
    ctx.person_cache.set(key, person or _NOT_FOUND)

    if person:
        logger.info(f"Found {person_type} via ProxyCurl for {company}: {person.name}")
    return person


async def resolve_manager(ctx: "EnrichmentContext", company: str) -> ManagerResolution:
    fields = placeholder_manager_fields(company)
    person = await find_person(ctx, company, PERSON_MANAGER)

    if person and person.name:
        photo = await resolve_person_photo(
            ctx, person.name, company, PERSON_MANAGER, real_photo_url=person.photo_url, email=person.email
        )
        manager = Manager(
            name=person.name,
            title=person.title or fields["title"],
            tagline=fields["tagline"],
            photo=photo.value,
            linkedin_url=person.linkedin_url,
        )
        return ManagerResolution(manager, EnrichmentSource.PROXYCURL, photo.source)

    logger.debug(f"Using placeholder manager for {company}")
    photo = await resolve_person_photo(ctx, fields["name"], company, PERSON_MANAGER)
    manager = Manager(photo=photo.value, **fields)
    return ManagerResolution(manager, EnrichmentSource.PLACEHOLDER, photo.source)


async def resolve_hr_contact(ctx: "EnrichmentContext", company: str) -> HRResolution:
    fields = placeholder_hr_fields(company)
    person = await find_person(ctx, company, PERSON_HR)

    name, title, photo_url, linkedin_url = fields["name"], fields["title"], None, None
    source = EnrichmentSource.PLACEHOLDER
    profile_email = None
    if person and person.name:
        name = person.name
        title = person.title or title
        photo_url = person.photo_url
        linkedin_url = person.linkedin_url
        profile_email = person.email
        source = EnrichmentSource.PROXYCURL
    else:
        logger.debug(f"Using placeholder HR contact for {company}")

    # An address listed on the profile is real; Hunter is only asked otherwise
    if profile_email:
        email = ResolvedValue(profile_email, EnrichmentSource.PROXYCURL)
    else:
        email = await resolve_hr_email(
            ctx, company, person_name=name if source == EnrichmentSource.PROXYCURL else None
        )
    real_email = email.value if email.source in (EnrichmentSource.PROXYCURL, EnrichmentSource.HUNTER) else None
    photo = await resolve_person_photo(
        ctx,
        name,
        company,
        PERSON_HR,
        real_photo_url=photo_url,
        email=real_email,
    )

    hr = HRContact(name=name, title=title, photo=photo.value, email=email.value, linkedin_url=linkedin_url)
    return HRResolution(hr, source, photo.source, email.source)
