"""
AI-generated headshots used when no real photo is available.

Chain:
1. Pre-fetched Generated.Photos pool (round-robin, wraps around)
2. Single Generated.Photos fetch (GENERATED_PHOTOS_API_KEY)
3. thispersondoesnotexist.com (keyless, cache-busted URL)

The pool lives in the EnrichmentContext, so it is shared by every job in
one batch and discarded with it.
"""

import logging
import random
import string
import time
from typing import Optional, TYPE_CHECKING

import httpx

from enrichment.http_utils import sanitize_error, ui_avatar_url
from enrichment.rate_limiter import RateLimitError, RateLimiter
from enrichment.types import EnrichmentSource, ResolvedValue

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

GENERATED_PHOTOS_URL = "https://api.generated.photos/api/v1/faces"
TPDNE_URL = "https://thispersondoesnotexist.com/"
POOL_SIZE = 20


class HeadshotPool:
    """Round-robin pool of pre-fetched headshot URLs."""

    def __init__(self, urls: Optional[list[str]] = None):
        self.urls: list[str] = list(urls or [])
        self.index = 0

    def __len__(self) -> int:
        return len(self.urls)

    def load(self, urls: list[str]) -> None:
        self.urls = list(urls)
        self.index = 0

    def next(self) -> Optional[str]:
        if not self.urls:
            return None
        if self.index >= len(self.urls):
            self.index = 0
        url = self.urls[self.index]
        self.index += 1
        return url


def _face_urls(payload: dict) -> list[str]:
    faces = payload.get("faces") or []
    return [
        face["urls"]["medium"]
        for face in faces
        if isinstance(face, dict) and (face.get("urls") or {}).get("medium")
    ]


async def _fetch_faces(
    client: httpx.AsyncClient,
    api_key: str,
    per_page: int,
    timeout: float,
    limiter: Optional[RateLimiter] = None,
) -> list[str]:
    params = {
        "api_key": api_key,
        "order_by": "random",
        "per_page": str(per_page),
        "age": "adult",
    }

    async def request() -> httpx.Response:
        response = await client.get(GENERATED_PHOTOS_URL, params=params, timeout=timeout)
        response.raise_for_status()
        return response

    if limiter is not None:
        response = await limiter.with_retry(request)
    else:
        response = await request()
    return _face_urls(response.json())


async def preload_headshot_pool(ctx: "EnrichmentContext", count: int = POOL_SIZE) -> int:
    """
    Fill ctx.headshot_pool with `count` random faces.

    Returns:
        Number of URLs loaded (0 when the key is missing or the call fails)
    """
    if not ctx.generated_photos_api_key:
        logger.debug("No Generated.Photos API key, skipping headshot pool preload")
        return 0

    try:
        urls = await _fetch_faces(
            ctx.client,
            ctx.generated_photos_api_key,
            per_page=count,
            timeout=15.0,
            limiter=ctx.limiters.get("generated_photos"),
        )
    except (httpx.HTTPError, RateLimitError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Failed to preload headshot pool: {sanitize_error(e)}")
        return 0

    if urls:
        ctx.headshot_pool.load(urls)
        logger.info(f"Preloaded {len(urls)} AI headshots")
    return len(urls)


async def fetch_generated_photo(ctx: "EnrichmentContext") -> Optional[str]:
    """Single random face from Generated.Photos, or None."""
    if not ctx.generated_photos_api_key:
        return None

    try:
        urls = await _fetch_faces(
            ctx.client,
            ctx.generated_photos_api_key,
            per_page=1,
            timeout=10.0,
            limiter=ctx.limiters.get("generated_photos"),
        )
    except (httpx.HTTPError, RateLimitError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Generated.Photos single fetch failed: {sanitize_error(e)}")
        return None
    return urls[0] if urls else None


def thispersondoesnotexist_url() -> str:
    """Cache-busted URL so each call yields a different face."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{TPDNE_URL}?_={int(time.time() * 1000)}-{suffix}"


def fallback_avatar(name: str) -> ResolvedValue:
    """Letter avatar; never fails."""
    url = ui_avatar_url(name, background="1e293b", size=300, bold="true", format="svg")
    return ResolvedValue(url, EnrichmentSource.UI_AVATARS)


async def generate_headshot(ctx: "EnrichmentContext", name: str) -> ResolvedValue:
    """
    Return an AI headshot for a person with no real photo.

    Always resolves: the last tier is a keyless URL.
    """
    pooled = ctx.headshot_pool.next()
    if pooled:
        logger.debug(f"Headshot for {name} served from pool")
        return ResolvedValue(pooled, EnrichmentSource.GENERATED_PHOTOS)

    fetched = await fetch_generated_photo(ctx)
    if fetched:
        logger.debug(f"Headshot for {name} from Generated.Photos API")
        return ResolvedValue(fetched, EnrichmentSource.GENERATED_PHOTOS)

    logger.debug(f"Headshot for {name} falling back to thispersondoesnotexist.com")
    return ResolvedValue(thispersondoesnotexist_url(), EnrichmentSource.THISPERSONDOESNOTEXIST)
