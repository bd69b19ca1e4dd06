"""jobs pipeline

Revision ID: c41d7e2a9b10
Revises:
Create Date: 2026-10-19 09:12:44.318220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'c41d7e2a9b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create jobs table with dedup key and enrichment queue columns."""
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('dedup_key', sa.Text(), nullable=False),
        # NormalizedJob fields
        sa.Column('company', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('salary', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requirements', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('benefits', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('company_logo', sa.Text(), nullable=True),
        sa.Column('team_size', sa.String(length=100), nullable=True),
        sa.Column('culture', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('source_name', sa.String(length=50), nullable=True),
        sa.Column('source_id', sa.String(length=255), nullable=True),
        sa.Column('source_url', sa.Text(), nullable=True),
        sa.Column('apply_url', sa.Text(), nullable=True),
        sa.Column('posted_at', sa.String(length=64), nullable=True),
        # Enrichment state machine
        sa.Column('enrichment_status', sa.String(length=20), server_default='none', nullable=False),
        # status: none, pending, processing, enriched, failed, failed_permanent
        sa.Column('enrichment_retries', sa.Integer(), server_default='0', nullable=False),
        sa.Column('enrichment_error', sa.Text(), nullable=True),
        sa.Column('enrichment_queued_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('enrichment_started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('enriched_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('enrichment_failed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        # Enrichment output
        sa.Column('manager', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('hr', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('tech_stack', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('enrichment_meta', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Dedup lookup (WHERE dedup_key IN (...) AND created_at >= window start)
    op.create_index('ix_jobs_dedup_key', 'jobs', ['dedup_key'])
    op.create_index('ix_jobs_created_at', 'jobs', ['created_at'])
    # Claim query (WHERE enrichment_status = 'pending' ORDER BY enrichment_queued_at)
    op.create_index('ix_jobs_enrichment_queue', 'jobs', ['enrichment_status', 'enrichment_queued_at'])


def downgrade() -> None:
    """Drop jobs table."""
    op.drop_index('ix_jobs_enrichment_queue', table_name='jobs')
    op.drop_index('ix_jobs_created_at', table_name='jobs')
    op.drop_index('ix_jobs_dedup_key', table_name='jobs')
    op.drop_table('jobs')
