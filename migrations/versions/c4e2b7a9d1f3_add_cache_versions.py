"""Add cache_versions for cross-worker query cache invalidation.

Revision ID: c4e2b7a9d1f3
Revises: a1f0c3e5d7b9
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "c4e2b7a9d1f3"
down_revision: Union[str, Sequence[str], None] = "a1f0c3e5d7b9"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "cache_versions",
        sa.Column("resource", sa.String(64), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("cache_versions")
