"""
Enrichment orchestrator.

enrich_job() turns a NormalizedJob into an EnrichedJobCard:
1. Company logo (logo chain)
2. Parse the description
3. Manager and HR contact, concurrently
4. Assemble, preferring source-supplied requirements/benefits and filling a
   missing salary from the parsed one

enrich_jobs() runs a bounded worker pool over a batch and substitutes a
minimal card (no network) for any job whose enrichment raised.
"""

import asyncio
import logging
from typing import Optional, TYPE_CHECKING

from enrichment.emails import guess_company_email
from enrichment.http_utils import ui_avatar_url
from enrichment.logos import company_initials_avatar, get_company_logo, is_placeholder_logo
from enrichment.parser import parse_job_description
from enrichment.people import (
    placeholder_hr_fields,
    placeholder_manager_fields,
    resolve_hr_contact,
    resolve_manager,
)
from enrichment.types import (
    EnrichedJobCard,
    EnrichmentMeta,
    EnrichmentSource,
    HRContact,
    Manager,
)
from sourcing.models import NormalizedJob

if TYPE_CHECKING:
    from enrichment.context import EnrichmentContext

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3


def _card_from_job(job: NormalizedJob, **fields) -> EnrichedJobCard:
    base = dict(
        company=job.company,
        role=job.role,
        location=job.location,
        salary=job.salary,
        description=job.description,
        requirements=list(job.requirements),
        benefits=list(job.benefits),
        tags=list(job.tags),
        team_size=job.team_size,
        culture=list(job.culture),
        source_name=job.source_name,
        source_id=job.source_id,
        source_url=job.source_url,
        apply_url=job.apply_url,
        created_at=job.created_at,
    )
    base.update(fields)
    return EnrichedJobCard(**base)


async def enrich_job(job: NormalizedJob, ctx: "EnrichmentContext") -> EnrichedJobCard:
    """
    Enrich a single job.

    Strategy failures are absorbed by the chains; anything that still raises
    here is handled by the caller (enrich_jobs / the batch worker).
    """
    logger.info(f"Enriching {job.company} / {job.role}")

    logo = await get_company_logo(ctx, job.company, job.company_logo)
    parsed = parse_job_description(job.description)

    manager_result, hr_result = await asyncio.gather(
        resolve_manager(ctx, job.company),
        resolve_hr_contact(ctx, job.company),
    )

    meta = EnrichmentMeta(
        manager_source=manager_result.source,
        hr_source=hr_result.source,
        manager_photo_source=manager_result.photo_source,
        hr_photo_source=hr_result.photo_source,
        email_source=hr_result.email_source,
        logo_source=logo.source,
        description_parsed=parsed.has_content,
    )

    logger.info(
        f"Enriched {job.company} / {job.role}: manager={meta.manager_source} "
        f"hr={meta.hr_source} email={meta.email_source} logo={meta.logo_source}"
    )

    return _card_from_job(
        job,
        salary=job.salary or parsed.salary,
        requirements=list(job.requirements) or parsed.requirements,
        benefits=list(job.benefits) or parsed.benefits,
        team_size=job.team_size or parsed.team_size,
        culture=list(job.culture) or parsed.culture,
        tech_stack=parsed.tech_stack,
        company_logo=logo.value,
        manager=manager_result.manager,
        hr=hr_result.hr,
        enrichment_meta=meta,
    )


def build_minimal_card(job: NormalizedJob) -> EnrichedJobCard:
    """
    Card built only from always-succeeding fallbacks; makes no network calls.

    Used when full enrichment of a job raised.
    """
    logo_source = EnrichmentSource.UI_AVATARS
    logo = company_initials_avatar(job.company)
    if job.company_logo and not is_placeholder_logo(job.company_logo):
        logo, logo_source = job.company_logo, EnrichmentSource.SOURCE

    manager = Manager(
        photo=ui_avatar_url("HM", background="4F46E5"),
        **placeholder_manager_fields(job.company),
    )
    hr = HRContact(
        photo=ui_avatar_url(job.company.strip()[:2] or "HR", background="10B981"),
        email=guess_company_email(job.company),
        **placeholder_hr_fields(job.company),
    )
    meta = EnrichmentMeta(
        manager_source=EnrichmentSource.PLACEHOLDER,
        hr_source=EnrichmentSource.PLACEHOLDER,
        manager_photo_source=EnrichmentSource.UI_AVATARS,
        hr_photo_source=EnrichmentSource.UI_AVATARS,
        email_source=EnrichmentSource.PLACEHOLDER,
        logo_source=logo_source,
        description_parsed=False,
    )
    return _card_from_job(job, company_logo=logo, manager=manager, hr=hr, enrichment_meta=meta)


async def enrich_jobs(
    jobs: list[NormalizedJob],
    ctx: "EnrichmentContext",
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[EnrichedJobCard]:
    """
    Enrich a batch with at most `concurrency` jobs in flight.

    Returns:
        One card per input job, in input order
    """
    results: list[Optional[EnrichedJobCard]] = [None] * len(jobs)
    queue: asyncio.Queue = asyncio.Queue()
    for index, job in enumerate(jobs):
        queue.put_nowait((index, job))

    async def worker() -> None:
        while True:
            try:
                index, job = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await enrich_job(job, ctx)
            except Exception as e:
                logger.exception(
                    f"Enrichment failed for {job.company} / {job.role}, using minimal card: {e}"
                )
                results[index] = build_minimal_card(job)

    workers = [worker() for _ in range(min(max(concurrency, 1), len(jobs)))]
    # Every worker finishes before an error surfaces, so none outlives the caller's client
    for outcome in await asyncio.gather(*workers, return_exceptions=True):
        if isinstance(outcome, BaseException):
            raise outcome
    return [card for card in results if card is not None]
