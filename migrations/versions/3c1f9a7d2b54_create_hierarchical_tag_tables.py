"""Create hierarchical tag tables

Revision ID: 3c1f9a7d2b54
Revises: 
Create Date: 2026-10-19 10:12:41.118304

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2b54'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Tag tree: parent_id / level / path
    op.create_table(
        'hierarchical_tag',
        sa.Column('id', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug_name', sa.String(length=100), nullable=False),
        sa.Column('parent_id', sa.String(length=20), nullable=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('path', sa.Text(), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_hierarchical_tag'),
        sa.UniqueConstraint('slug_name', name='uq_hierarchical_tag_slug_name')
    )
    op.create_index('ix_hierarchical_tag_parent_id', 'hierarchical_tag', ['parent_id'])

    # Question <-> tag associations with path snapshot
    op.create_table(
        'question_hierarchical_tag_rel',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('question_id', sa.String(length=64), nullable=False),
        sa.Column('hierarchical_tag_id', sa.String(length=20), nullable=False),
        sa.Column('hierarchical_tag_path', sa.Text(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id', name='pk_question_hierarchical_tag_rel')
    )
    op.create_index(
        'ix_question_hierarchical_tag_rel_question_tag',
        'question_hierarchical_tag_rel',
        ['question_id', 'hierarchical_tag_id'],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_question_hierarchical_tag_rel_question_tag', table_name='question_hierarchical_tag_rel')
    op.drop_table('question_hierarchical_tag_rel')
    op.drop_index('ix_hierarchical_tag_parent_id', table_name='hierarchical_tag')
    op.drop_table('hierarchical_tag')
