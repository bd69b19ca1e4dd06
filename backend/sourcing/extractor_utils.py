"""
Utility functions for running source adapters.

run_all_adapters() runs every enabled adapter concurrently; a failing
adapter contributes no jobs and an error message, never an exception.
"""

import asyncio
import logging
from typing import Optional

import httpx

from extractors.base_extractor import BaseJobExtractor
from extractors.registry import get_enabled_extractors
from enrichment.rate_limiter import RateLimitError, build_rate_limiters
from sourcing.models import AdapterResult, NormalizedJob

logger = logging.getLogger(__name__)


def _map_extractor_error(e: BaseException) -> str:
    """Map adapter exceptions to user-friendly error messages."""
    if isinstance(e, httpx.TimeoutException):
        return "Request timed out - source may be slow"
    elif isinstance(e, httpx.HTTPStatusError):
        status_code = e.response.status_code
        if status_code in (401, 403):
            return "Access denied - check API key or rate limits"
        elif status_code == 404:
            return "Source endpoint not found - URL may have changed"
        elif status_code == 429:
            return "Rate limited by source - try again later"
        elif status_code >= 500:
            return "Source server error - try again later"
        else:
            return f"HTTP error: {status_code}"
    elif isinstance(e, RateLimitError):
        return "Rate limited by source - try again later"
    elif isinstance(e, httpx.HTTPError):
        return f"Network error: {type(e).__name__}"
    elif isinstance(e, (KeyError, TypeError, ValueError, AttributeError)):
        return "Unexpected response format - API may have changed"
    else:
        return f"Extraction failed: {type(e).__name__}"


async def run_adapter(extractor: BaseJobExtractor) -> AdapterResult:
    """
    Run a single adapter.

    Returns:
        AdapterResult with jobs, or no jobs and an error message
    """
    try:
        jobs = await extractor.fetch_jobs()
        logger.info(f"Adapter {extractor.NAME} completed with {len(jobs)} jobs")
        return AdapterResult(source=extractor.NAME, jobs=jobs)
    except Exception as e:
        logger.exception(f"Adapter {extractor.NAME} failed: {e}")
        return AdapterResult(source=extractor.NAME, jobs=[], error=_map_extractor_error(e))


async def run_adapters(extractors: list[BaseJobExtractor]) -> list[AdapterResult]:
    """
    Run adapters in parallel.

    Returns:
        One AdapterResult per adapter, in input order
    """
    logger.info(f"Running {len(extractors)} adapters: {', '.join(e.NAME for e in extractors)}")

    results_list = await asyncio.gather(
        *(run_adapter(extractor) for extractor in extractors),
        return_exceptions=True,
    )

    results: list[AdapterResult] = []
    for extractor, result in zip(extractors, results_list):
        if isinstance(result, BaseException):
            logger.error(f"Unexpected error for {extractor.NAME}: {result!r}")
            results.append(AdapterResult(
                source=extractor.NAME,
                jobs=[],
                error="Unexpected error occurred",
            ))
        else:
            results.append(result)

    return results


async def run_all_adapters(
    settings,
    client: Optional[httpx.AsyncClient] = None,
    _get_extractors=get_enabled_extractors,
) -> list[AdapterResult]:
    """
    Run every adapter enabled by the current configuration.

    Args:
        settings: Settings object with source API keys
        client: Shared AsyncClient (one is created for the run if None)
        _get_extractors: Injectable for testing

    Returns:
        List of AdapterResult, one per enabled adapter
    """
    limiters = build_rate_limiters()

    if client is not None:
        return await run_adapters(_get_extractors(settings, client=client, limiters=limiters))

    async with httpx.AsyncClient() as owned_client:
        return await run_adapters(_get_extractors(settings, client=owned_client, limiters=limiters))


def collect_jobs(results: list[AdapterResult]) -> list[NormalizedJob]:
    """Flatten adapter results into one job list (adapter order preserved)."""
    jobs: list[NormalizedJob] = []
    for result in results:
        jobs.extend(result.jobs)
    return jobs


def collect_errors(results: list[AdapterResult]) -> list[str]:
    return [f"{result.source}: {result.error}" for result in results if result.error]
