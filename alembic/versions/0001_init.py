"""initial

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table('user',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('email', sa.String(length=320), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('display_name', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('body_type', sa.String(length=16), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table('clothing_item',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('original_image_url', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('brand', sa.String(length=200), nullable=True),
        sa.Column('size', sa.String(length=32), nullable=True),
        sa.Column('season', sa.String(length=16), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('shopping_url', sa.Text(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('is_purchased', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_clothing_item_user_id', 'clothing_item', ['user_id'])
    op.create_table('look',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('item_ids', sa.JSON(), nullable=True),
        sa.Column('items_snapshot', sa.JSON(), nullable=True),
        sa.Column('layers', sa.JSON(), nullable=True),
        sa.Column('snapshot_url', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('public_id', sa.String(length=64), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_look_user_id', 'look', ['user_id'])
    op.create_table('public_look',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('look_id', sa.String(length=64), sa.ForeignKey('look.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('public_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.Text(), nullable=False, server_default=''),
        sa.Column('owner_id', sa.String(length=64), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('owner_name', sa.Text(), nullable=True),
        sa.Column('owner_email', sa.Text(), nullable=True),
        sa.Column('snapshot_url', sa.Text(), nullable=True),
        sa.Column('items_snapshot', sa.JSON(), nullable=True),
        sa.Column('likes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bookmarks_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_public_look_public_id', 'public_look', ['public_id'], unique=True)
    op.create_index('ix_public_look_owner_id', 'public_look', ['owner_id'])
    for table, constraint in (('user_like', 'uq_user_like'), ('user_bookmark', 'uq_user_bookmark')):
        op.create_table(table,
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('user_id', sa.String(length=64), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
            sa.Column('public_look_id', sa.String(length=64), sa.ForeignKey('public_look.id', ondelete='CASCADE'), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.UniqueConstraint('user_id', 'public_look_id', name=constraint),
        )

def downgrade() -> None:
    op.drop_table('user_bookmark')
    op.drop_table('user_like')
    op.drop_index('ix_public_look_owner_id', table_name='public_look')
    op.drop_index('ix_public_look_public_id', table_name='public_look')
    op.drop_table('public_look')
    op.drop_index('ix_look_user_id', table_name='look')
    op.drop_table('look')
    op.drop_index('ix_clothing_item_user_id', table_name='clothing_item')
    op.drop_table('clothing_item')
    op.drop_table('user')
