"""create_tasks

Revision ID: 3b9e4c1a7d20
Revises: 
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b9e4c1a7d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tasks',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_identifier', sa.String(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("length(trim(title)) > 0", name='ck_tasks_title_not_blank'),
        sa.CheckConstraint("length(user_identifier) > 0", name='ck_tasks_user_identifier_not_empty'),
    )
    op.create_index('idx_tasks_user_created', 'tasks', ['user_identifier', sa.text('created_at DESC')])


def downgrade() -> None:
    op.drop_index('idx_tasks_user_created', table_name='tasks')
    op.drop_table('tasks')
