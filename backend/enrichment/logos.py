"""
Company logo resolution.

Priority chain:
1. Logo supplied by the job source (unless it is a placeholder avatar)
2. Clearbit logo API on the guessed domain (free, no key)
3. Brandfetch search (BRANDFETCH_API_KEY)
4. Google favicon on the guessed domain
5. UI Avatars initials (always resolves)
"""

import logging
import re
from typing import Optional, TYPE_CHECKING
from urllib.parse import quote

import httpx

from enrichment.http_utils import initials, is_image_reachable, ui_avatar_url
from enrichment.types import EnrichmentSource, ResolvedValue

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

PLACEHOLDER_LOGO_HOSTS = ("ui-avatars.com", "pravatar.cc")

CLEARBIT_URL = "https://logo.clearbit.com/{domain}"
BRANDFETCH_SEARCH_URL = "https://api.brandfetch.io/v2/search/{query}"
GOOGLE_FAVICON_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=128"

DOMAIN_OVERRIDES: dict[str, str] = {
    "meta": "meta.com",
    "alphabet": "google.com",
    "google": "google.com",
    "microsoft": "microsoft.com",
    "apple": "apple.com",
    "amazon": "amazon.com",
    "netflix": "netflix.com",
    "tesla": "tesla.com",
    "spacex": "spacex.com",
    "stripe": "stripe.com",
    "airbnb": "airbnb.com",
    "uber": "uber.com",
    "lyft": "lyft.com",
    "snap": "snapchat.com",
    "snapchat": "snapchat.com",
    "x corp": "x.com",
    "twitter": "x.com",
    "tiktok": "tiktok.com",
    "bytedance": "bytedance.com",
    "salesforce": "salesforce.com",
    "slack": "slack.com",
    "shopify": "shopify.com",
    "spotify": "spotify.com",
    "coinbase": "coinbase.com",
    "robinhood": "robinhood.com",
    "databricks": "databricks.com",
    "datadog": "datadoghq.com",
    "palantir": "palantir.com",
    "cloudflare": "cloudflare.com",
    "figma": "figma.com",
    "notion": "notion.so",
    "vercel": "vercel.com",
    "twilio": "twilio.com",
    "github": "github.com",
    "gitlab": "gitlab.com",
    "atlassian": "atlassian.com",
    "jira": "atlassian.com",
    "dropbox": "dropbox.com",
    "reddit": "reddit.com",
    "discord": "discord.com",
    "pinterest": "pinterest.com",
    "linkedin": "linkedin.com",
    "ibm": "ibm.com",
    "oracle": "oracle.com",
    "intel": "intel.com",
    "nvidia": "nvidia.com",
    "amd": "amd.com",
    "cisco": "cisco.com",
    "vmware": "vmware.com",
    "adobe": "adobe.com",
    "intuit": "intuit.com",
    "square": "squareup.com",
    "block": "block.xyz",
    "doordash": "doordash.com",
    "instacart": "instacart.com",
    "plaid": "plaid.com",
    "openai": "openai.com",
    "anthropic": "anthropic.com",
}

_CORPORATE_SUFFIX = re.compile(
    r"\s*,?\s*(?:inc\.?|llc\.?|corp\.?|corporation|ltd\.?|limited|co\.?|company|group|"
    r"holdings|technologies|technology|tech|software|labs?|studios?|solutions|services|"
    r"systems|enterprises?|international|plc\.?)$",
    re.IGNORECASE,
)


def guess_company_domain(name: str) -> str:
    """
    Guess a company's primary domain from its name.

    Overrides first, then strip a corporate suffix and slugify to ".com".

    Example:
        "Datadog" -> "datadoghq.com"
        "Acme Technologies, Inc." -> "acmetechnologies.com"
        "Foo Labs" -> "foo.com"
    """
    normalized = name.strip().lower()
    if normalized in DOMAIN_OVERRIDES:
        return DOMAIN_OVERRIDES[normalized]

    cleaned = _CORPORATE_SUFFIX.sub("", normalized).strip()
    if cleaned in DOMAIN_OVERRIDES:
        return DOMAIN_OVERRIDES[cleaned]

    slug = re.sub(r"[^a-z0-9]+", "", cleaned)
    return f"{slug}.com"


def is_placeholder_logo(url: Optional[str]) -> bool:
    return not url or any(host in url for host in PLACEHOLDER_LOGO_HOSTS)


def company_initials_avatar(company: str) -> str:
    """Deterministic initials logo; never fails."""
    return ui_avatar_url(initials(company) or "?", background="1a1a2e", size=128)


def clearbit_logo_url(domain: str) -> str:
    return CLEARBIT_URL.format(domain=domain)


async def try_clearbit(client: httpx.AsyncClient, domain: str) -> Optional[str]:
    url = clearbit_logo_url(domain)
    if await is_image_reachable(client, url, timeout=4.0, allow_empty_content_type=True):
        return url
    return None


async def try_brandfetch(
    client: httpx.AsyncClient,
    company: str,
    api_key: Optional[str],
) -> Optional[str]:
    """
    Search Brandfetch by company name.

    Returns the first result's icon, or a Clearbit logo for the result's
    domain when no icon is present.
    """
    if not api_key:
        return None

    try:
        response = await client.get(
            BRANDFETCH_SEARCH_URL.format(query=quote(company)),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=5.0,
        )
        if not response.is_success:
            logger.debug(f"Brandfetch search for {company} returned {response.status_code}")
            return None
        results = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.debug(f"Brandfetch search for {company} failed: {e}")
        return None

    if not isinstance(results, list) or not results:
        return None

    first = results[0] or {}
    if first.get("icon"):
        return first["icon"]
    if first.get("domain"):
        return await try_clearbit(client, first["domain"])
    return None


async def try_google_favicon(client: httpx.AsyncClient, domain: str) -> Optional[str]:
    url = GOOGLE_FAVICON_URL.format(domain=domain)
    if await is_image_reachable(client, url, timeout=4.0, allow_empty_content_type=True):
        return url
    return None


async def get_company_logo(
    ctx: "EnrichmentContext",
    company: str,
    existing_logo: Optional[str] = None,
) -> ResolvedValue:
    """
    Resolve the best logo URL for a company.

    Args:
        ctx: Per-invocation enrichment context (client, cache, keys)
        company: Company display name
        existing_logo: Logo supplied by the job source, if any

    Returns:
        ResolvedValue(url, source); always resolves
    """
    if existing_logo and not is_placeholder_logo(existing_logo):
        return ResolvedValue(existing_logo, EnrichmentSource.SOURCE)

    cache_key = company.strip().lower()
    cached = ctx.logo_cache.get(cache_key)
    if cached is not None:
        return cached

    domain = guess_company_domain(company)
    resolved: Optional[ResolvedValue] = None

    url = await try_clearbit(ctx.client, domain)
    if url:
        resolved = ResolvedValue(url, EnrichmentSource.CLEARBIT)

    if resolved is None:
        url = await try_brandfetch(ctx.client, company, ctx.brandfetch_api_key)
        if url:
            resolved = ResolvedValue(url, EnrichmentSource.BRANDFETCH)

    if resolved is None:
        url = await try_google_favicon(ctx.client, domain)
        if url:
            resolved = ResolvedValue(url, EnrichmentSource.GOOGLE_FAVICON)

    if resolved is None:
        resolved = ResolvedValue(company_initials_avatar(company), EnrichmentSource.UI_AVATARS)

    logger.debug(f"Logo for {company} resolved via {resolved.source}")
    ctx.logo_cache.set(cache_key, resolved)
    return resolved
