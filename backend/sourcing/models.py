"""
Typed structures for job sourcing.

NormalizedJob is the common schema every source adapter produces. It is
frozen: adapters build it once and the normalizer/orchestrator only read it.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional


def build_dedup_key(company: str, role: str, location: str) -> str:
    """
    Build the case-insensitive identity used for deduplication.

    Example:
        build_dedup_key("Acme", "Backend  Engineer", "Remote")
        -> "acme|backend engineer|remote"
    """
    parts = [" ".join((value or "").split()).lower() for value in (company, role, location)]
    return "|".join(parts)


@dataclass(frozen=True)
class NormalizedJob:
    """
    Source-agnostic job posting.

    role, company and location are required; everything else is optional
    and may be filled in later by the enrichment pipeline.
    """
    company: str
    role: str
    location: str
    salary: Optional[str] = None
    description: Optional[str] = None
    requirements: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    company_logo: Optional[str] = None
    team_size: Optional[str] = None
    culture: list[str] = field(default_factory=list)
    # Source tracking
    source_name: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    apply_url: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return build_dedup_key(self.company, self.role, self.location)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "NormalizedJob":
        return cls(
            company=data["company"],
            role=data["role"],
            location=data["location"],
            salary=data.get("salary"),
            description=data.get("description"),
            requirements=list(data.get("requirements") or []),
            benefits=list(data.get("benefits") or []),
            tags=list(data.get("tags") or []),
            company_logo=data.get("company_logo"),
            team_size=data.get("team_size"),
            culture=list(data.get("culture") or []),
            source_name=data.get("source_name"),
            source_id=data.get("source_id"),
            source_url=data.get("source_url"),
            apply_url=data.get("apply_url"),
            created_at=data.get("created_at"),
        )


@dataclass
class AdapterResult:
    """Result from running one source adapter."""
    source: str
    jobs: list[NormalizedJob]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DedupResult:
    """Counts returned by the normalizer for one batch."""
    fetched: int
    new: int
    duplicates: int
    new_by_source: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScrapeResult:
    """Outcome of one scrape run (adapters + dedup)."""
    fetched: int
    new_jobs: int
    duplicates: int
    errors: list[str] = field(default_factory=list)
    by_source: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)
