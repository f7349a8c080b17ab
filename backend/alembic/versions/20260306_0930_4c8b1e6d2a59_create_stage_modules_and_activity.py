"""create_stage_modules_and_activity

Revision ID: 4c8b1e6d2a59
Revises: 9e3d5a2f7c14
Create Date: 2026-03-06 09:30:41.518204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = '4c8b1e6d2a59'
down_revision: Union[str, None] = '9e3d5a2f7c14'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tasks, timeline events, approvals and the activity log."""
    op.create_table(
        'tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'in_progress', 'completed', 'cancelled', name='task_status', create_type=True),
            server_default='pending',
            nullable=False,
        ),
        sa.Column(
            'priority',
            sa.Enum('low', 'medium', 'high', 'urgent', name='task_priority', create_type=True),
            server_default='medium',
            nullable=False,
        ),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('round_number', sa.Integer(), server_default='1', nullable=False),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('contacts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_tasks_stage_id', 'tasks', ['stage_id'])

    op.create_table(
        'timeline_events',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'type',
            sa.Enum(
                'milestone', 'deadline', 'event', 'meeting', 'inspection',
                name='timeline_event_type', create_type=True,
            ),
            server_default='event',
            nullable=False,
        ),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('round_number', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_timeline_events_stage_id', 'timeline_events', ['stage_id'])

    op.create_table(
        'approvals',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), server_default='Approval Request', nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'approved', 'rejected', name='approval_status', create_type=True),
            server_default='pending',
            nullable=False,
        ),
        sa.Column('document_url', sa.String(length=1000), nullable=True),
        sa.Column('round_number', sa.Integer(), server_default='1', nullable=False),
        sa.Column('requested_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('responded_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_approvals_stage_round', 'approvals', ['stage_id', 'round_number'])
    op.create_index('ix_approvals_assigned_to', 'approvals', ['assigned_to'])

    op.create_table(
        'activity_log',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('phase_id', UUID(as_uuid=True), sa.ForeignKey('phases.id', ondelete='CASCADE'), nullable=True),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='CASCADE'), nullable=True),
        sa.Column('round_number', sa.Integer(), nullable=True),
        sa.Column(
            'type',
            sa.Enum(
                'comment_added', 'status_changed', 'approval_requested', 'approval_approved',
                'approval_rejected', 'round_started', 'stage_created', 'stage_completed',
                name='activity_type', create_type=True,
            ),
            nullable=False,
        ),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('details', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_activity_log_project_id', 'activity_log', ['project_id'])
    op.create_index('ix_activity_log_phase_id', 'activity_log', ['phase_id'])


def downgrade() -> None:
    """Drop the activity log, approvals, timeline events, tasks and their enums."""
    op.drop_index('ix_activity_log_phase_id', table_name='activity_log')
    op.drop_index('ix_activity_log_project_id', table_name='activity_log')
    op.drop_table('activity_log')
    op.drop_index('ix_approvals_assigned_to', table_name='approvals')
    op.drop_index('ix_approvals_stage_round', table_name='approvals')
    op.drop_table('approvals')
    op.drop_index('ix_timeline_events_stage_id', table_name='timeline_events')
    op.drop_table('timeline_events')
    op.drop_index('ix_tasks_stage_id', table_name='tasks')
    op.drop_table('tasks')
    for enum_name in ('activity_type', 'approval_status', 'timeline_event_type', 'task_priority', 'task_status'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
