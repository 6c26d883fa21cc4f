"""batch try-on result

Revision ID: 0002_batch_try_on_result
Revises: 0001_catalog_and_users
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_batch_try_on_result"
down_revision = "0001_catalog_and_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "batch_try_on_result",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_image_path", sa.Text(), nullable=False),
        sa.Column("total_outfits", sa.Integer(), nullable=False),
        sa.Column("completed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="processing"),
        sa.Column("results", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_batch_try_on_result_batch_id", "batch_try_on_result", ["batch_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_batch_try_on_result_batch_id", table_name="batch_try_on_result")
    op.drop_table("batch_try_on_result")
