"""Initial schema: ratings and rate_limit_entries.

Creates the append-only ``ratings`` table and the ``rate_limit_entries``
window table.

Key design choices:
- Category values live in two JSONB objects rather than one column per
  category, so vocabulary changes need no migration.
- ``uq_rate_limit_identifier_kind`` is the ``ON CONFLICT`` target of the
  conditional window upsert; concurrent submissions on the same key are
  serialized by this constraint.
- ``idx_ratings_location_submitted`` serves the newest-first listing.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create both tables with their indexes and constraints."""
    op.create_table(
        "ratings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("location_key", sa.String(512), nullable=False),
        sa.Column("location_name", sa.String(500), nullable=True),
        sa.Column("location_address", sa.String(500), nullable=True),
        sa.Column(
            "attributes",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "multi_value_attributes",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("identity", sa.String(256), nullable=False),
        sa.Column("source_address", sa.String(128), nullable=False),
        sa.Column("submitted_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_ratings_location_key", "ratings", ["location_key"])
    op.create_index("ix_ratings_identity", "ratings", ["identity"])
    op.create_index("ix_ratings_source_address", "ratings", ["source_address"])
    op.create_index("ix_ratings_submitted_at", "ratings", ["submitted_at"])
    op.create_index(
        "idx_ratings_location_submitted",
        "ratings",
        ["location_key", "submitted_at"],
    )

    op.create_table(
        "rate_limit_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("identifier", sa.String(1024), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("window_start", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint(
            "identifier",
            "kind",
            name="uq_rate_limit_identifier_kind",
        ),
    )


def downgrade() -> None:
    """Drop both tables."""
    op.drop_table("rate_limit_entries")
    op.drop_index("idx_ratings_location_submitted", table_name="ratings")
    op.drop_index("ix_ratings_submitted_at", table_name="ratings")
    op.drop_index("ix_ratings_source_address", table_name="ratings")
    op.drop_index("ix_ratings_identity", table_name="ratings")
    op.drop_index("ix_ratings_location_key", table_name="ratings")
    op.drop_table("ratings")
