"""create_notes_and_costs

Revision ID: 9e3d5a2f7c14
Revises: 1b6f08c3e2d7
Create Date: 2026-03-05 11:48:09.226731

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '9e3d5a2f7c14'
down_revision: Union[str, None] = '1b6f08c3e2d7'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create stage notes and project costs."""
    op.create_table(
        'notes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notes_stage_id', 'notes', ['stage_id'])

    op.create_table(
        'costs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('phase_id', UUID(as_uuid=True), sa.ForeignKey('phases.id', ondelete='SET NULL'), nullable=True),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('stages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('quoted_amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('actual_amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('paid_amount', sa.Numeric(14, 2), server_default='0', nullable=False),
        sa.Column(
            'payment_status',
            sa.Enum(
                'not_started', 'quoted', 'approved', 'partially_paid', 'paid',
                name='payment_status', create_type=True,
            ),
            server_default='not_started',
            nullable=False,
        ),
        sa.Column('vendor_name', sa.String(length=200), nullable=True),
        sa.Column(
            'payment_method',
            sa.Enum('external', 'platform', name='payment_method', create_type=True),
            server_default='external',
            nullable=False,
        ),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_costs_project_id', 'costs', ['project_id'])


def downgrade() -> None:
    """Drop costs, notes and the payment enums."""
    op.drop_index('ix_costs_project_id', table_name='costs')
    op.drop_table('costs')
    op.drop_index('ix_notes_stage_id', table_name='notes')
    op.drop_table('notes')
    sa.Enum(name='payment_method').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='payment_status').drop(op.get_bind(), checkfirst=True)
