"""create_phases_and_stages

Revision ID: 1b6f08c3e2d7
Revises: e7c24f1b9a85
Create Date: 2026-03-05 10:12:33.418650

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '1b6f08c3e2d7'
down_revision: Union[str, None] = 'e7c24f1b9a85'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create phases and stages with their status enums."""
    op.create_table(
        'phases',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), server_default='0', nullable=False),
        sa.Column(
            'status',
            sa.Enum('not_started', 'in_progress', 'completed', name='phase_status', create_type=True),
            server_default='not_started',
            nullable=False,
        ),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_phases_project_id', 'phases', ['project_id'])

    op.create_table(
        'stages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('phase_id', UUID(as_uuid=True), sa.ForeignKey('phases.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'module_type',
            sa.Enum(
                'files', 'tasks', 'costs', 'payments', 'notes', 'timeline', 'approvals',
                name='module_type', create_type=True,
            ),
            nullable=False,
        ),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            'status',
            sa.Enum(
                'not_started', 'in_progress', 'awaiting_approval', 'completed', 'on_hold',
                name='stage_status', create_type=True,
            ),
            server_default='not_started',
            nullable=False,
        ),
        sa.Column('allows_rounds', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('current_round', sa.Integer(), server_default='1', nullable=False),
        sa.Column('requires_approval', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_stages_phase_id', 'stages', ['phase_id'])


def downgrade() -> None:
    """Drop stages, phases and their enums."""
    op.drop_index('ix_stages_phase_id', table_name='stages')
    op.drop_table('stages')
    op.drop_index('ix_phases_project_id', table_name='phases')
    op.drop_table('phases')
    sa.Enum(name='stage_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='module_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='phase_status').drop(op.get_bind(), checkfirst=True)
