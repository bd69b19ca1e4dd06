from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy import Index, Integer, String, Text, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from models import Base

# JSONB on Postgres, plain JSON elsewhere; Python None is stored as SQL NULL
JSONColumn = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class EnrichmentStatus:
    """
    Enrichment state machine values.

    pending -> processing -> enriched
                          -> failed -> pending (retry)
                                    -> failed_permanent (retries exhausted)
    """
    NONE = "none"
    PENDING = "pending"
    PROCESSING = "processing"
    ENRICHED = "enriched"
    FAILED = "failed"
    FAILED_PERMANENT = "failed_permanent"

    ALL = [NONE, PENDING, PROCESSING, ENRICHED, FAILED, FAILED_PERMANENT]
    # Records still expected to reach "enriched" through the queue
    REMAINING = [PENDING, FAILED]


class Job(Base):
    """
    Model for scraped job records.

    dedup_key is the lowercased company|role|location identity. It is
    indexed but not unique: uniqueness is only enforced inside the dedup
    window by the normalizer.
    """
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dedup_key: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # NormalizedJob fields
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    salary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requirements: Mapped[Optional[list]] = mapped_column(JSONColumn, nullable=True)
    benefits: Mapped[Optional[list]] = mapped_column(JSONColumn, nullable=True)
    tags: Mapped[Optional[list]] = mapped_column(JSONColumn, nullable=True)
    company_logo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    team_size: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    culture: Mapped[Optional[list]] = mapped_column(JSONColumn, nullable=True)

    # Source tracking
    source_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    apply_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    posted_at: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)  # as reported by the source

    # Enrichment state machine (mutated only via db/enrichment_queue.py)
    enrichment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrichmentStatus.NONE
    )
    enrichment_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrichment_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    enrichment_queued_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    enrichment_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    enriched_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    enrichment_failed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Enrichment output
    manager: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONColumn, nullable=True)
    hr: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONColumn, nullable=True)
    tech_stack: Mapped[Optional[list]] = mapped_column(JSONColumn, nullable=True)
    enrichment_meta: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONColumn, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_jobs_enrichment_queue", "enrichment_status", "enrichment_queued_at"),
        Index("ix_jobs_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, company='{self.company}', role='{self.role}', enrichment_status='{self.enrichment_status}')>"
