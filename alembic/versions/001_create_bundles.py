"""create_bundles

Revision ID: 001
Revises:
Create Date: 2026-10-19

Create the bundles table and its component rows:
- bundles: one row per (shop, parent product), handle unique per shop
- bundle_components: the two component products, at positions 1 and 2
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create bundles and bundle_components."""
    op.create_table(
        "bundles",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("shop", sa.String(length=255), nullable=False),
        sa.Column("parent_product_id", sa.String(length=100), nullable=False),
        sa.Column("handle", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("health", sa.String(length=20), nullable=False, server_default="ok"),
        sa.Column("issues_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_validated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shop", "parent_product_id", name="uq_bundle_shop_parent"),
        sa.UniqueConstraint("shop", "handle", name="uq_bundle_shop_handle"),
    )
    op.create_index(op.f("ix_bundles_shop"), "bundles", ["shop"], unique=False)

    op.create_table(
        "bundle_components",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("bundle_id", sa.String(length=32), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(["bundle_id"], ["bundles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bundle_id", "position", name="uq_component_position"),
    )
    op.create_index(
        op.f("ix_bundle_components_bundle_id"), "bundle_components", ["bundle_id"], unique=False
    )


def downgrade() -> None:
    """Drop bundle_components and bundles."""
    op.drop_index(op.f("ix_bundle_components_bundle_id"), table_name="bundle_components")
    op.drop_table("bundle_components")
    op.drop_index(op.f("ix_bundles_shop"), table_name="bundles")
    op.drop_table("bundles")
