"""Create notes table with access configuration and edit lease

Revision ID: 6f1c2a9d4b7e
Revises:
Create Date: 2025-10-02 09:14:27.511204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '6f1c2a9d4b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    uuid_array = postgresql.ARRAY(postgresql.UUID(as_uuid=True))
    op.create_table(
        'notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('creator_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('access_level', sa.String(length=20), nullable=False, server_default='private'),
        sa.Column('edit_mode', sa.String(length=20), nullable=False, server_default='everyone'),
        sa.Column('view_access_list', uuid_array, nullable=False, server_default='{}'),
        sa.Column('edit_allow_list', uuid_array, nullable=False, server_default='{}'),
        sa.Column('edit_deny_list', uuid_array, nullable=False, server_default='{}'),
        sa.Column('lock_holder_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('lock_acquired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('length(title) <= 200', name='ck_notes_title_len'),
        sa.CheckConstraint(
            "access_level IN ('public', 'shared', 'private')", name='ck_notes_access_level'
        ),
        sa.CheckConstraint(
            "edit_mode IN ('everyone', 'access_list', 'deny_list', 'no_one')",
            name='ck_notes_edit_mode',
        ),
        sa.CheckConstraint(
            '(lock_holder_id IS NULL) = (lock_acquired_at IS NULL)', name='ck_notes_lock_pair'
        ),
    )
    op.create_index('idx_notes_org_id', 'notes', ['org_id'])
    op.create_index('idx_notes_creator_id', 'notes', ['creator_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_notes_creator_id', table_name='notes')
    op.drop_index('idx_notes_org_id', table_name='notes')
    op.drop_table('notes')
