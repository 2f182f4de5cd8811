"""create_researches

Revision ID: e1f2a3b4c5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "e1f2a3b4c5d6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")
    op.create_table(
        "researches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("abstract", sa.Text(), nullable=True),
        sa.Column("researcher", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("keywords", sa.Text(), nullable=True),
        sa.Column("year", sa.String(4), nullable=False),
        sa.Column("institution", sa.String(255), nullable=True),
        sa.Column("school", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("document_url", sa.Text(), nullable=True),
        sa.Column("document_type", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Draft"),
        sa.Column("progress_status", sa.String(50), nullable=True),
        sa.Column("unhold_reason", sa.Text(), nullable=True),
        sa.Column("unheld_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unheld_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("unreject_reason", sa.Text(), nullable=True),
        sa.Column("unrejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unrejected_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_researches_researcher", "researches", ["researcher"])
    op.create_index("ix_researches_department", "researches", ["department"])
    op.create_index("ix_researches_status", "researches", ["status"])
    op.create_index(
        "ix_researches_title_trgm",
        "researches",
        ["title"],
        postgresql_using="gin",
        postgresql_ops={"title": "gin_trgm_ops"},
    )


def downgrade() -> None:
    op.drop_index("ix_researches_title_trgm", table_name="researches")
    op.drop_index("ix_researches_status", table_name="researches")
    op.drop_index("ix_researches_department", table_name="researches")
    op.drop_index("ix_researches_researcher", table_name="researches")
    op.drop_table("researches")
