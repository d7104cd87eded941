"""create blog_posts table

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 09:00:00.000000

Posts are append-only. image_path and avatar_path hold storage references
such as "app/uploads/<uuid>.png" and stay NULL when nothing was attached.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a2b3c4d5e6f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'blog_posts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('image_path', sa.Text(), nullable=True),
        sa.Column('avatar_path', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_blog_posts')),
    )
    op.create_index(op.f('ix_blog_posts_created_at'), 'blog_posts', ['created_at'])


def downgrade() -> None:
    op.drop_index(op.f('ix_blog_posts_created_at'), table_name='blog_posts')
    op.drop_table('blog_posts')
