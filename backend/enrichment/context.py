"""
Per-invocation enrichment context.

Everything the resolution chains share (HTTP client, caches, rate limiters,
headshot pool, photo storage, background tasks) is created once per batch
invocation and discarded with it; nothing is module-global.

Usage:
    async with open_enrichment_context(settings) as ctx:
        cards = await enrich_jobs(jobs, ctx)
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

import httpx

from enrichment.cache import InMemoryCache, ResolutionCache
from enrichment.headshots import HeadshotPool, preload_headshot_pool
from enrichment.rate_limiter import RateLimiter, build_rate_limiters
from enrichment.storage import PhotoStorage
from enrichment.url_safety import Resolver, resolve_host
from utils.background import BackgroundTasks

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentContext:
    client: httpx.AsyncClient
    proxycurl_api_key: Optional[str] = None
    hunter_api_key: Optional[str] = None
    generated_photos_api_key: Optional[str] = None
    brandfetch_api_key: Optional[str] = None
    limiters: dict[str, RateLimiter] = field(default_factory=build_rate_limiters)
    logo_cache: ResolutionCache = field(default_factory=lambda: InMemoryCache("logo"))
    person_cache: ResolutionCache = field(default_factory=lambda: InMemoryCache("person"))
    email_cache: ResolutionCache = field(default_factory=lambda: InMemoryCache("email"))
    photo_cache: ResolutionCache = field(default_factory=lambda: InMemoryCache("photo"))
    headshot_pool: HeadshotPool = field(default_factory=HeadshotPool)
    storage: Optional[PhotoStorage] = None
    background: BackgroundTasks = field(default_factory=BackgroundTasks)
    resolve_host: Resolver = resolve_host

    @classmethod
    def from_settings(cls, settings, client: httpx.AsyncClient, **overrides) -> "EnrichmentContext":
        """Build a context from Settings; empty keys disable their strategies."""
        storage = PhotoStorage(settings.PHOTO_BUCKET) if settings.PHOTO_BUCKET else None
        values = dict(
            client=client,
            proxycurl_api_key=settings.PROXYCURL_API_KEY or None,
            hunter_api_key=settings.HUNTER_API_KEY or None,
            generated_photos_api_key=settings.GENERATED_PHOTOS_API_KEY or None,
            brandfetch_api_key=settings.BRANDFETCH_API_KEY or None,
            storage=storage,
        )
        values.update(overrides)
        return cls(**values)


@asynccontextmanager
async def open_enrichment_context(
    settings,
    client: Optional[httpx.AsyncClient] = None,
    preload_headshots: bool = True,
    **overrides,
) -> AsyncIterator[EnrichmentContext]:
    """
    Create a context for one invocation.

    On exit, background tasks are drained and an owned HTTP client is closed.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient()

    ctx = EnrichmentContext.from_settings(settings, client, **overrides)
    try:
        if preload_headshots:
            await preload_headshot_pool(ctx)
        yield ctx
    finally:
        await ctx.background.drain()
        if owns_client:
            await client.aclose()
