"""
Typed structures passed between the queue and the workers.
"""

from dataclasses import dataclass, asdict

from models.job import Job
from sourcing.models import NormalizedJob


def job_to_normalized(job: Job) -> NormalizedJob:
    """
    Rebuild the NormalizedJob a queue record was persisted from.

    posted_at holds the source's created_at.
    """
    return NormalizedJob(
        company=job.company,
        role=job.role,
        location=job.location,
        salary=job.salary,
        description=job.description,
        requirements=list(job.requirements or []),
        benefits=list(job.benefits or []),
        tags=list(job.tags or []),
        company_logo=job.company_logo,
        team_size=job.team_size,
        culture=list(job.culture or []),
        source_name=job.source_name,
        source_id=job.source_id,
        source_url=job.source_url,
        apply_url=job.apply_url,
        created_at=job.posted_at,
    )


@dataclass
class ClaimedJob:
    """
    A claimed queue record, detached from the session.

    Holds what the worker needs after the claim transaction: the id for
    state transitions, the job itself, and the photo URLs already stored
    (to find mirrored objects replaced by this enrichment).
    """
    id: int
    job: NormalizedJob
    previous_photos: list[str]

    @classmethod
    def from_record(cls, record: Job) -> "ClaimedJob":
        photos = [
            (person or {}).get("photo")
            for person in (record.manager, record.hr)
        ]
        return cls(
            id=record.id,
            job=job_to_normalized(record),
            previous_photos=[url for url in photos if url],
        )


@dataclass
class EnrichmentBatchResult:
    """
    Outcome of one batch invocation.

    {processed, enriched, failed, remaining} is the cron endpoint response.
    """
    processed: int = 0
    enriched: int = 0
    failed: int = 0
    remaining: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
