"""initial schema

Revision ID: initial_schema
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create admins table
    op.create_table('admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admins_email'), 'admins', ['email'], unique=True)
    op.create_index(op.f('ix_admins_id'), 'admins', ['id'], unique=False)

    # Create categories table
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_categories_id'), 'categories', ['id'], unique=False)
    op.create_index(op.f('ix_categories_name'), 'categories', ['name'], unique=False)
    op.create_index(op.f('ix_categories_slug'), 'categories', ['slug'], unique=True)
    op.create_index(op.f('ix_categories_status'), 'categories', ['status'], unique=False)

    # Create news_and_events table
    op.create_table('news_and_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('cover_image', sa.String(length=500), nullable=True),
        sa.Column('date_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by'], ['admins.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_news_and_events_category_id'), 'news_and_events', ['category_id'], unique=False)
    op.create_index(op.f('ix_news_and_events_created_at'), 'news_and_events', ['created_at'], unique=False)
    op.create_index(op.f('ix_news_and_events_date_time'), 'news_and_events', ['date_time'], unique=False)
    op.create_index(op.f('ix_news_and_events_id'), 'news_and_events', ['id'], unique=False)
    op.create_index(op.f('ix_news_and_events_status'), 'news_and_events', ['status'], unique=False)

    # Create news_and_events_images table
    op.create_table('news_and_events_images',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('news_and_events_id', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=False),
        sa.Column('image_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['news_and_events_id'], ['news_and_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_news_and_events_images_id'), 'news_and_events_images', ['id'], unique=False)
    op.create_index(op.f('ix_news_and_events_images_image_order'), 'news_and_events_images', ['image_order'], unique=False)
    op.create_index(op.f('ix_news_and_events_images_news_and_events_id'), 'news_and_events_images', ['news_and_events_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_news_and_events_images_news_and_events_id'), table_name='news_and_events_images')
    op.drop_index(op.f('ix_news_and_events_images_image_order'), table_name='news_and_events_images')
    op.drop_index(op.f('ix_news_and_events_images_id'), table_name='news_and_events_images')
    op.drop_table('news_and_events_images')

    op.drop_index(op.f('ix_news_and_events_status'), table_name='news_and_events')
    op.drop_index(op.f('ix_news_and_events_id'), table_name='news_and_events')
    op.drop_index(op.f('ix_news_and_events_date_time'), table_name='news_and_events')
    op.drop_index(op.f('ix_news_and_events_created_at'), table_name='news_and_events')
    op.drop_index(op.f('ix_news_and_events_category_id'), table_name='news_and_events')
    op.drop_table('news_and_events')

    op.drop_index(op.f('ix_categories_status'), table_name='categories')
    op.drop_index(op.f('ix_categories_slug'), table_name='categories')
    op.drop_index(op.f('ix_categories_name'), table_name='categories')
    op.drop_index(op.f('ix_categories_id'), table_name='categories')
    op.drop_table('categories')

    op.drop_index(op.f('ix_admins_id'), table_name='admins')
    op.drop_index(op.f('ix_admins_email'), table_name='admins')
    op.drop_table('admins')
