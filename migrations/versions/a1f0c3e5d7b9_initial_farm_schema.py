"""Initial farm schema: identities, modules, flocks, inventory, chart of accounts.

Revision ID: a1f0c3e5d7b9
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1f0c3e5d7b9"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(updated=False),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("access_token", sa.String(128), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("access_token"),
    )
    op.create_index("idx_auth_sessions_user", "auth_sessions", ["user_id"])

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="operator"),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "system_modules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("module_key", sa.String(64), nullable=False),
        sa.Column("module_name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("requires_modules", sa.JSON(), nullable=False),
        sa.Column("config", sa.JSON(), nullable=False),
        sa.Column("icon", sa.String(64), nullable=False, server_default="Circle"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("module_key"),
    )
    op.create_index("idx_system_modules_sort", "system_modules", ["sort_order"])

    op.create_table(
        "flocks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("flock_number", sa.String(64), nullable=False),
        sa.Column("flock_type", sa.String(16), nullable=False),
        sa.Column("breed", sa.String(128), nullable=False, server_default=""),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("initial_quantity", sa.Integer(), nullable=False),
        sa.Column("current_quantity", sa.Integer(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("expected_end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("flock_number"),
    )
    op.create_index("idx_flocks_status", "flocks", ["status"])
    op.create_index("idx_flocks_entry_date", "flocks", ["entry_date"])

    egg_columns = [
        sa.Column(name, sa.Integer(), nullable=False, server_default="0")
        for name in (
            "eggs_jumbo",
            "eggs_extra_large",
            "eggs_large",
            "eggs_medium",
            "eggs_small",
            "eggs_dirty",
            "eggs_broken",
            "total_eggs",
        )
    ]
    op.create_table(
        "daily_production",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("flock_id", sa.String(36), nullable=False),
        sa.Column("production_date", sa.Date(), nullable=False),
        *egg_columns,
        sa.Column("hen_count", sa.Integer(), nullable=False),
        sa.Column("laying_percentage", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["flock_id"], ["flocks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_daily_production_flock", "daily_production", ["flock_id"])
    op.create_index("idx_daily_production_date", "daily_production", ["production_date"])

    op.create_table(
        "inventory_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("category_name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("category_name"),
    )

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(36), nullable=True),
        sa.Column("unit_of_measure", sa.String(32), nullable=False),
        sa.Column("min_stock", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("max_stock", sa.Numeric(14, 2), nullable=True),
        sa.Column("current_stock", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("barcode", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("requires_batch", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["inventory_categories.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("sku"),
    )
    op.create_index("idx_inventory_items_name", "inventory_items", ["item_name"])
    op.create_index("idx_inventory_items_active", "inventory_items", ["is_active"])

    op.create_table(
        "chart_of_accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("account_code", sa.String(32), nullable=False),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("account_type", sa.String(16), nullable=False),
        sa.Column("account_subtype", sa.String(64), nullable=True),
        sa.Column("sat_code_id", sa.String(36), nullable=True),
        sa.Column("parent_account_id", sa.String(36), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_header", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("normal_balance", sa.String(8), nullable=False),
        sa.Column("allows_entries", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("current_balance", sa.Numeric(16, 2), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_account_id"], ["chart_of_accounts.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("account_code"),
    )
    op.create_index("idx_coa_type", "chart_of_accounts", ["account_type"])
    op.create_index("idx_coa_parent", "chart_of_accounts", ["parent_account_id"])


def downgrade() -> None:
    op.drop_index("idx_coa_parent", table_name="chart_of_accounts")
    op.drop_index("idx_coa_type", table_name="chart_of_accounts")
    op.drop_table("chart_of_accounts")
    op.drop_index("idx_inventory_items_active", table_name="inventory_items")
    op.drop_index("idx_inventory_items_name", table_name="inventory_items")
    op.drop_table("inventory_items")
    op.drop_table("inventory_categories")
    op.drop_index("idx_daily_production_date", table_name="daily_production")
    op.drop_index("idx_daily_production_flock", table_name="daily_production")
    op.drop_table("daily_production")
    op.drop_index("idx_flocks_entry_date", table_name="flocks")
    op.drop_index("idx_flocks_status", table_name="flocks")
    op.drop_table("flocks")
    op.drop_index("idx_system_modules_sort", table_name="system_modules")
    op.drop_table("system_modules")
    op.drop_table("user_profiles")
    op.drop_index("idx_auth_sessions_user", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("users")
