"""create_contacts_table

Revision ID: 5a0e93d7c618
Revises: c51b7e09d4a2
Create Date: 2026-03-03 14:02:10.771245

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '5a0e93d7c618'
down_revision: Union[str, None] = 'c51b7e09d4a2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the organization contact book."""
    op.create_table(
        'contacts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('company', sa.String(length=200), nullable=True),
        sa.Column(
            'role',
            sa.Enum('owner', 'builder', 'architect', 'certifier', name='contact_role', create_type=True),
            nullable=True,
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_invited', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('invited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index('ix_contacts_org_id', 'contacts', ['org_id'])
    op.create_index('ix_contacts_user_id', 'contacts', ['user_id'])
    op.create_index('ix_contacts_email', 'contacts', ['email'])


def downgrade() -> None:
    """Drop contacts table and contact_role enum."""
    op.drop_index('ix_contacts_email', table_name='contacts')
    op.drop_index('ix_contacts_user_id', table_name='contacts')
    op.drop_index('ix_contacts_org_id', table_name='contacts')
    op.drop_table('contacts')
    sa.Enum(name='contact_role').drop(op.get_bind(), checkfirst=True)
