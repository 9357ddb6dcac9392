"""Object field store

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "object_fields",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("field", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("key", "field", name="uq_object_field_key_field"),
    )
    op.create_index("ix_object_fields_key", "object_fields", ["key"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_object_fields_key", table_name="object_fields")
    op.drop_table("object_fields")
