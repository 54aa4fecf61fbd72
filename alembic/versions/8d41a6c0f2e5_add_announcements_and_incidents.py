"""add announcements and incident reports

Revision ID: 8d41a6c0f2e5
Revises: 3b7e1c9d2a40
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8d41a6c0f2e5"
down_revision: str | Sequence[str] | None = "3b7e1c9d2a40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "announcements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("priority", sa.String(length=8), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("published_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=True),
        sa.Column("audience_everyone", sa.Boolean(), nullable=False),
        sa.Column("audience_departments", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("audience_roles", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("attachments", postgresql.JSONB(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "announcement_reads",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column(
            "announcement_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("announcements.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("read_at", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "incident_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("reported_by", sa.String(length=255), nullable=False),
        sa.Column("reported_at", sa.BigInteger(), nullable=False),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("root_cause", sa.Text(), nullable=True),
        sa.Column("affected_systems", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("preventive_measures", postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column("resolved_at", sa.BigInteger(), nullable=True),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_incident_reports_status", "incident_reports", ["status"])
    op.create_index("ix_incident_reports_reported_by", "incident_reports", ["reported_by"])


def downgrade() -> None:
    op.drop_index("ix_incident_reports_reported_by", table_name="incident_reports")
    op.drop_index("ix_incident_reports_status", table_name="incident_reports")
    op.drop_table("incident_reports")
    op.drop_table("announcement_reads")
    op.drop_table("announcements")
