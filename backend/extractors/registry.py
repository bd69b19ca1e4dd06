"""
Source Adapter Registry

Static list of adapters with the configuration each one needs. Adapters
whose keys are missing are skipped without error.

Usage:
    from extractors.registry import get_enabled_extractors, get_extractor

    extractors = get_enabled_extractors(settings, client=client, limiters=limiters)
    extractor = get_extractor("remoteok", settings=settings)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

import httpx

from enrichment.rate_limiter import RateLimiter
from .base_extractor import BaseJobExtractor, DEFAULT_MAX_JOBS
from .remoteok import RemoteOKExtractor
from .arbeitnow import ArbeitnowExtractor
from .remotive import RemotiveExtractor
from .themuse import TheMuseExtractor
from .greenhouse import GreenhouseExtractor
from .lever import LeverExtractor
from .jsearch import JSearchExtractor
from .adzuna import AdzunaExtractor
from .reed import ReedExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """Capability check (config keys) plus factory (extractor class)."""
    extractor_class: Type[BaseJobExtractor]
    # Shared rate limiter for sources with a known quota
    limiter_name: Optional[str] = None

    @property
    def name(self) -> str:
        return self.extractor_class.NAME

    @property
    def config_keys(self) -> Tuple[str, ...]:
        return self.extractor_class.CONFIG_KEYS

    def is_enabled(self, settings) -> bool:
        return settings.has_keys(*self.config_keys)


# Keyless sources first, then keyed ones
ADAPTER_REGISTRY: List[RegistryEntry] = [
    RegistryEntry(RemoteOKExtractor),
    RegistryEntry(ArbeitnowExtractor),
    RegistryEntry(RemotiveExtractor),
    RegistryEntry(TheMuseExtractor),
    RegistryEntry(GreenhouseExtractor),
    RegistryEntry(LeverExtractor),
    RegistryEntry(JSearchExtractor, limiter_name="jsearch"),
    RegistryEntry(AdzunaExtractor, limiter_name="adzuna"),
    RegistryEntry(ReedExtractor),
]

REGISTRY_BY_NAME: Dict[str, RegistryEntry] = {entry.name: entry for entry in ADAPTER_REGISTRY}


def _build(
    entry: RegistryEntry,
    settings,
    client: Optional[httpx.AsyncClient],
    limiters: Optional[Dict[str, RateLimiter]],
) -> BaseJobExtractor:
    limiter = (limiters or {}).get(entry.limiter_name) if entry.limiter_name else None
    max_jobs = getattr(settings, "MAX_JOBS_PER_ADAPTER", DEFAULT_MAX_JOBS)
    return entry.extractor_class(settings=settings, client=client, limiter=limiter, max_jobs=max_jobs)


def get_enabled_extractors(
    settings,
    client: Optional[httpx.AsyncClient] = None,
    limiters: Optional[Dict[str, RateLimiter]] = None,
    registry: Optional[List[RegistryEntry]] = None,
) -> List[BaseJobExtractor]:
    """
    Instantiate every adapter whose configuration is present.

    Args:
        settings: Settings object (must provide has_keys())
        client: Shared AsyncClient for all adapters
        limiters: Rate limiters from build_rate_limiters()
        registry: Override the registry (tests)

    Returns:
        Initialized extractors, in registry order
    """
    extractors = []
    for entry in registry if registry is not None else ADAPTER_REGISTRY:
        if not entry.is_enabled(settings):
            logger.info(f"Skipping adapter {entry.name}: missing {', '.join(entry.config_keys)}")
            continue
        extractors.append(_build(entry, settings, client, limiters))
    return extractors


def get_extractor(
    name: str,
    settings=None,
    client: Optional[httpx.AsyncClient] = None,
    limiters: Optional[Dict[str, RateLimiter]] = None,
) -> BaseJobExtractor:
    """
    Get an initialized extractor by source name

    Raises:
        ValueError: If the source is not in the registry

    Example:
        >>> extractor = get_extractor('greenhouse', settings=settings)
        >>> jobs = await extractor.fetch_jobs()
    """
    entry = REGISTRY_BY_NAME.get(name.lower())
    if entry is None:
        available = ', '.join(REGISTRY_BY_NAME)
        raise ValueError(
            f"Source '{name}' not found in registry. "
            f"Available: {available}"
        )
    return _build(entry, settings, client, limiters)


def list_sources() -> List[str]:
    return list(REGISTRY_BY_NAME)
