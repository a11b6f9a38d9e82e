"""add inventory locations and stock levels tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "inventory_locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False, server_default="warehouse"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inventory_locations_organization_id", "inventory_locations", ["organization_id"], unique=False)
    op.create_index(
        "ix_inventory_locations_organization_type",
        "inventory_locations",
        ["organization_id", "type"],
        unique=False,
    )

    op.create_table(
        "stock_levels",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("quantity_available", sa.Numeric(14, 4), nullable=True),
        sa.Column("quantity_reserved", sa.Numeric(14, 4), nullable=True),
        sa.Column("quantity_on_hand", sa.Numeric(14, 4), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["location_id"], ["inventory_locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "location_id", name="uq_stock_levels_product_location"),
    )
    op.create_index("ix_stock_levels_product_id", "stock_levels", ["product_id"], unique=False)
    op.create_index("ix_stock_levels_location_id", "stock_levels", ["location_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_stock_levels_location_id", table_name="stock_levels")
    op.drop_index("ix_stock_levels_product_id", table_name="stock_levels")
    op.drop_table("stock_levels")

    op.drop_index("ix_inventory_locations_organization_type", table_name="inventory_locations")
    op.drop_index("ix_inventory_locations_organization_id", table_name="inventory_locations")
    op.drop_table("inventory_locations")
