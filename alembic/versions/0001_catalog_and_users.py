"""catalog and users

Revision ID: 0001_catalog_and_users
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_catalog_and_users'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table('gender',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('display_name', sa.String(length=128), nullable=False),
        sa.Column('banner_image', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_table('category',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=128), nullable=False),
        sa.Column('banner_image', sa.Text(), nullable=True),
        sa.Column('gender_id', sa.Integer(), sa.ForeignKey('gender.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.UniqueConstraint('name', 'gender_id', name='uq_category_name_gender'),
    )
    op.create_table('outfit',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('cloth_type', sa.String(length=64), nullable=False, server_default='upper'),
        sa.Column('price', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('category.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_outfit_category_active', 'outfit', ['category_id', 'is_active'])
    op.create_table('user',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True, unique=True),
        sa.Column('plan', sa.String(length=32), nullable=False, server_default='Free'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_table('try_on_result',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('outfit_id', sa.Integer(), sa.ForeignKey('outfit.id', ondelete='SET NULL'), nullable=True),
        sa.Column('result_image_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('task_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )

def downgrade() -> None:
    op.drop_table('try_on_result')
    op.drop_table('user')
    op.drop_index('ix_outfit_category_active', table_name='outfit')
    op.drop_table('outfit')
    op.drop_table('category')
    op.drop_table('gender')
