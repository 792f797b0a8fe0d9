"""Initial schema: projects and endpoints tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("code", name="uq_projects_code"),
        schema="public",
    )
    op.create_table(
        "endpoints",
        sa.Column("id", postgresql.UUID, primary_key=True),
        sa.Column("seq", sa.BigInteger, sa.Identity(always=True), nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID,
            sa.ForeignKey("public.projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("method", sa.Text, nullable=False),
        sa.Column("path", sa.Text, nullable=False),
        sa.Column("response_status", sa.Integer, nullable=False),
        sa.Column("response_body", sa.Text, nullable=False, server_default=""),
        sa.Column("response_headers", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("response_status BETWEEN 100 AND 599", name="ck_endpoints_status"),
        schema="public",
    )
    op.create_index(
        "uq_endpoints_project_method_path",
        "endpoints",
        ["project_id", "method", "path"],
        unique=True,
        schema="public",
    )
    op.create_index("ix_endpoints_project_seq", "endpoints", ["project_id", "seq"], schema="public")


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_endpoints_project_seq", table_name="endpoints", schema="public")
    op.drop_index("uq_endpoints_project_method_path", table_name="endpoints", schema="public")
    op.drop_table("endpoints", schema="public")
    op.drop_table("projects", schema="public")
