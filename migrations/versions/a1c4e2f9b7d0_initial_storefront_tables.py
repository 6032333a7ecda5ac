"""users, product_groups and products tables

Revision ID: a1c4e2f9b7d0
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "a1c4e2f9b7d0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("subscribe", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("company", sa.String(length=200), nullable=False),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("apartment", sa.String(length=100), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("zip_code", sa.String(length=20), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("business_license", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_email", ["email"], unique=True)

    op.create_table(
        "product_groups",
        sa.Column("variant_group_id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="new"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("name", name="uq_product_groups_name"),
    )
    with op.batch_alter_table("product_groups", schema=None) as batch_op:
        batch_op.create_index("ix_product_groups_category", ["category"], unique=False)
        batch_op.create_index("ix_product_groups_status", ["status"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "variant_group_id",
            sa.String(length=36),
            sa.ForeignKey("product_groups.variant_group_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("color", sa.String(length=64), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=False),
        sa.Column("hover_image_url", sa.String(length=512), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_variant_group_id", ["variant_group_id"], unique=False)


def downgrade():
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.drop_index("ix_products_variant_group_id")
    op.drop_table("products")

    with op.batch_alter_table("product_groups", schema=None) as batch_op:
        batch_op.drop_index("ix_product_groups_status")
        batch_op.drop_index("ix_product_groups_category")
    op.drop_table("product_groups")

    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index("ix_users_email")
    op.drop_table("users")
