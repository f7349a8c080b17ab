"""create_org_members_and_invites

Revision ID: c51b7e09d4a2
Revises: 8d2e4b6a1f03
Create Date: 2026-03-02 09:21:47.003318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import UUID

revision: str = 'c51b7e09d4a2'
down_revision: Union[str, None] = '8d2e4b6a1f03'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

org_role = postgresql.ENUM('owner', 'admin', 'member', name='org_role', create_type=False)


def upgrade() -> None:
    """Create org_members and org_invites tables sharing the org_role enum."""
    org_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'org_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', org_role, nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('org_id', 'user_id', name='uq_org_members_org_user'),
    )
    op.create_index('ix_org_members_org_id', 'org_members', ['org_id'])
    op.create_index('ix_org_members_user_id', 'org_members', ['user_id'])

    op.create_table(
        'org_invites',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', org_role, nullable=False),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('invited_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_org_invites_org_id', 'org_invites', ['org_id'])
    op.create_index('ix_org_invites_email', 'org_invites', ['email'])
    op.create_index('ix_org_invites_token', 'org_invites', ['token'], unique=True)


def downgrade() -> None:
    """Drop org_invites, org_members and the org_role enum."""
    op.drop_index('ix_org_invites_token', table_name='org_invites')
    op.drop_index('ix_org_invites_email', table_name='org_invites')
    op.drop_index('ix_org_invites_org_id', table_name='org_invites')
    op.drop_table('org_invites')
    op.drop_index('ix_org_members_user_id', table_name='org_members')
    op.drop_index('ix_org_members_org_id', table_name='org_members')
    op.drop_table('org_members')
    org_role.drop(op.get_bind(), checkfirst=True)
