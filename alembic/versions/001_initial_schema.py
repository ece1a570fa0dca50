"""Initial schema - document table with url and content-hash deduplication.

Revision ID: 001
Revises:
Create Date: 2025-10-03

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PROCESSING_STATUSES = ("pending", "processing", "completed", "failed", "duplicate")


def upgrade() -> None:
    op.create_table(
        "document",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("organization", sa.String(255), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        # SHA-256 hex of the raw downloaded bytes
        sa.Column("content_hash", sa.String(64), nullable=True),
        sa.Column("markdown_content", sa.Text(), nullable=True),
        sa.Column("baseline_summary", sa.Text(), nullable=True),
        sa.Column(
            "extracted_topics",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column(
            "extracted_entities",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("processing_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "duplicate_of",
            sa.UUID(),
            sa.ForeignKey("document.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("times_referenced", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "processing_status IN ({})".format(", ".join(f"'{s}'" for s in PROCESSING_STATUSES)),
            name="ck_document_processing_status",
        ),
        sa.CheckConstraint(
            "(processing_status = 'duplicate') = (duplicate_of IS NOT NULL)",
            name="ck_document_duplicate_of",
        ),
        sa.CheckConstraint("duplicate_of <> id", name="ck_document_not_self_duplicate"),
        sa.CheckConstraint("times_referenced >= 0", name="ck_document_times_referenced"),
    )
    # Unique url is what collapses concurrent creators onto one row.
    op.create_index("ix_document_url", "document", ["url"], unique=True)
    op.create_index("ix_document_content_hash", "document", ["content_hash"])
    op.create_index("ix_document_processing_status", "document", ["processing_status"])
    op.create_index("ix_document_published_at", "document", ["published_at"])
    op.create_index("ix_document_organization", "document", ["organization"])


def downgrade() -> None:
    op.drop_index("ix_document_organization", table_name="document")
    op.drop_index("ix_document_published_at", table_name="document")
    op.drop_index("ix_document_processing_status", table_name="document")
    op.drop_index("ix_document_content_hash", table_name="document")
    op.drop_index("ix_document_url", table_name="document")
    op.drop_table("document")
