"""
Person photo resolution.

Priority chain:
1. Real photo URL (e.g. LinkedIn via ProxyCurl), SSRF-checked and verified
2. Gravatar for a known email (d=404, verified)
3. AI headshot (pool -> Generated.Photos -> thispersondoesnotexist)
4. UI Avatars initials (always resolves)

Real photos (tiers 1-2) are mirrored to S3 when a photo bucket is configured.
"""

import hashlib
import logging
from typing import Optional, TYPE_CHECKING

from enrichment.headshots import fallback_avatar, generate_headshot
from enrichment.http_utils import is_image_reachable
from enrichment.storage import PhotoMirrorError
from enrichment.types import EnrichmentSource, ResolvedValue
from enrichment.url_safety import is_safe_image_url, safe_image_url_checker

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

PHOTO_CHECK_TIMEOUT = 5.0


def gravatar_url(email: str) -> str:
    """Gravatar URL for the MD5 of the trimmed, lowercased email."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?s=300&d=404"


async def try_real_photo(ctx: "EnrichmentContext", url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if not await is_safe_image_url(url, resolve=ctx.resolve_host):
        logger.warning(f"Rejected unsafe photo URL: {url}")
        return None
    check_url = safe_image_url_checker(ctx.resolve_host)
    if await is_image_reachable(ctx.client, url, timeout=PHOTO_CHECK_TIMEOUT, check_url=check_url):
        return url
    logger.debug(f"Photo URL invalid or unreachable: {url}")
    return None


async def try_gravatar(ctx: "EnrichmentContext", email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    url = gravatar_url(email)
    check_url = safe_image_url_checker(ctx.resolve_host)
    if await is_image_reachable(ctx.client, url, timeout=PHOTO_CHECK_TIMEOUT, check_url=check_url):
        return url
    return None


async def _mirror(ctx: "EnrichmentContext", url: str, company: str, kind: str) -> str:
    if ctx.storage is None:
        return url
    try:
        return await ctx.storage.mirror(
            ctx.client, url, company, kind, check_url=safe_image_url_checker(ctx.resolve_host),
        )
    except PhotoMirrorError as e:
        logger.warning(f"Photo mirroring failed, keeping source URL: {e}")
        return url


async def resolve_person_photo(
    ctx: "EnrichmentContext",
    name: str,
    company: str,
    kind: str,
    real_photo_url: Optional[str] = None,
    real_photo_source: str = EnrichmentSource.PROXYCURL,
    email: Optional[str] = None,
) -> ResolvedValue:
    """
    Resolve a photo for a manager or HR contact.

    Args:
        ctx: Per-invocation enrichment context
        name: Person (or placeholder) display name
        company: Company name, used for mirrored object keys
        kind: "manager" or "hr"
        real_photo_url: Photo from a people-data source, if any
        real_photo_source: Strategy that supplied real_photo_url
        email: Known email for the Gravatar tier

    Returns:
        ResolvedValue(url, source); always resolves
    """
    cache_key = f"{company.strip().lower()}::{kind}::{real_photo_url or ''}::{(email or '').strip().lower()}"
    cached = ctx.photo_cache.get(cache_key)
    if cached is not None:
        return cached

    resolved: Optional[ResolvedValue] = None

    url = await try_real_photo(ctx, real_photo_url)
    if url:
        resolved = ResolvedValue(await _mirror(ctx, url, company, kind), real_photo_source)

    if resolved is None:
        url = await try_gravatar(ctx, email)
        if url:
            resolved = ResolvedValue(await _mirror(ctx, url, company, kind), EnrichmentSource.GRAVATAR)

    if resolved is None:
        try:
            resolved = await generate_headshot(ctx, name)
        except Exception as e:
            logger.error(f"Headshot generation failed for {name}, using letter avatar: {e}")
            resolved = fallback_avatar(name)

    ctx.photo_cache.set(cache_key, resolved)
    return resolved
