"""
Typed structures produced by the enrichment pipeline.

EnrichedJobCard is the display-ready record: every display field is
populated, falling back to synthetic values when no real source answered.
EnrichmentMeta records which strategy supplied each resolved field.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional


class EnrichmentSource:
    """Strategy identifiers recorded in EnrichmentMeta."""
    PROXYCURL = "proxycurl"
    HUNTER = "hunter"
    CLEARBIT = "clearbit"
    BRANDFETCH = "brandfetch"
    GOOGLE_FAVICON = "google_favicon"
    GRAVATAR = "gravatar"
    GENERATED_PHOTOS = "generated_photos"
    THISPERSONDOESNOTEXIST = "thispersondoesnotexist"
    UI_AVATARS = "ui_avatars"
    PARSED = "parsed"
    PLACEHOLDER = "placeholder"
    SOURCE = "source"  # supplied by the job source itself


@dataclass(frozen=True)
class ResolvedValue:
    """A chain result: the value plus the strategy that produced it."""
    value: str
    source: str


@dataclass
class PersonLookup:
    """A real person found via professional-network search."""
    name: str
    title: Optional[str] = None
    photo_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    email: Optional[str] = None  # first address listed on the profile


@dataclass
class Manager:
    name: str
    title: str
    tagline: str
    photo: str
    linkedin_url: Optional[str] = None


@dataclass
class HRContact:
    name: str
    title: str
    photo: str
    email: str
    linkedin_url: Optional[str] = None


@dataclass
class EnrichmentMeta:
    """Which strategy supplied each resolved field."""
    manager_source: str
    hr_source: str
    manager_photo_source: str
    hr_photo_source: str
    email_source: str
    logo_source: str
    description_parsed: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EnrichedJobCard:
    """A NormalizedJob plus every resolved display field."""
    company: str
    role: str
    location: str
    company_logo: str
    manager: Manager
    hr: HRContact
    enrichment_meta: EnrichmentMeta
    salary: Optional[str] = None
    description: Optional[str] = None
    requirements: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    team_size: Optional[str] = None
    culture: list[str] = field(default_factory=list)
    tech_stack: list[str] = field(default_factory=list)
    source_name: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    apply_url: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    def to_record_fields(self) -> dict:
        """Fields written back to the jobs table when the record is enriched."""
        return {
            "salary": self.salary,
            "requirements": self.requirements,
            "benefits": self.benefits,
            "tags": self.tags,
            "company_logo": self.company_logo,
            "team_size": self.team_size,
            "culture": self.culture,
            "tech_stack": self.tech_stack,
            "manager": asdict(self.manager),
            "hr": asdict(self.hr),
            "enrichment_meta": self.enrichment_meta.to_dict(),
        }
