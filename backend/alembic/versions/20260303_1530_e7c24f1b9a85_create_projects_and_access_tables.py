"""create_projects_and_access_tables

Revision ID: e7c24f1b9a85
Revises: 5a0e93d7c618
Create Date: 2026-03-03 15:30:55.902114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import UUID

revision: str = 'e7c24f1b9a85'
down_revision: Union[str, None] = '5a0e93d7c618'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

permission_level = postgresql.ENUM('viewer', 'editor', 'admin', name='permission_level', create_type=False)


def upgrade() -> None:
    """Create projects, project_shares and project_contacts."""
    permission_level.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'projects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('template', sa.String(length=50), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column(
            'status',
            sa.Enum('draft', 'active', 'on_hold', 'completed', 'archived', name='project_status', create_type=True),
            server_default='draft',
            nullable=False,
        ),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('target_completion', sa.Date(), nullable=True),
        sa.Column('budget', sa.Numeric(14, 2), nullable=True),
        sa.Column('contract_value', sa.Numeric(14, 2), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_projects_org_id', 'projects', ['org_id'])

    op.create_table(
        'project_shares',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', permission_level, nullable=False),
        sa.Column('invited_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('invited_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('project_id', 'org_id', name='uq_project_shares_project_org'),
    )
    op.create_index('ix_project_shares_project_id', 'project_shares', ['project_id'])
    op.create_index('ix_project_shares_org_id', 'project_shares', ['org_id'])

    op.create_table(
        'project_contacts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('contact_id', UUID(as_uuid=True), sa.ForeignKey('contacts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', permission_level, server_default='viewer', nullable=False),
        sa.Column('role_label', sa.String(length=100), nullable=True),
        sa.Column('is_primary', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('project_id', 'contact_id', name='uq_project_contacts_project_contact'),
    )
    op.create_index('ix_project_contacts_project_id', 'project_contacts', ['project_id'])
    op.create_index('ix_project_contacts_contact_id', 'project_contacts', ['contact_id'])


def downgrade() -> None:
    """Drop project access tables, projects and their enums."""
    op.drop_index('ix_project_contacts_contact_id', table_name='project_contacts')
    op.drop_index('ix_project_contacts_project_id', table_name='project_contacts')
    op.drop_table('project_contacts')
    op.drop_index('ix_project_shares_org_id', table_name='project_shares')
    op.drop_index('ix_project_shares_project_id', table_name='project_shares')
    op.drop_table('project_shares')
    op.drop_index('ix_projects_org_id', table_name='projects')
    op.drop_table('projects')
    permission_level.drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='project_status').drop(op.get_bind(), checkfirst=True)
