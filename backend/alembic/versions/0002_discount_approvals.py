"""discount approval requests and the admin notification inbox

Revision ID: 0002_discount_approvals
Revises: 0001_initial
Create Date: 2026-10-02
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_discount_approvals'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def upgrade() -> None:
    op.create_table(
        'discount_approval_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('requested_discount_type', sa.String(length=16), nullable=False),
        sa.Column('requested_discount_value', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('requested_by_email', sa.String(length=255), nullable=False),
        sa.Column('requested_by_name', sa.String(length=255), nullable=False),
        sa.Column('decided_by_email', sa.String(length=255), nullable=True),
        sa.Column('max_discount_percentage_allowed', sa.Numeric(5, 2), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_discount_approval_requests_client_id', 'discount_approval_requests', ['client_id'])
    op.create_index('ix_discount_approval_requests_status', 'discount_approval_requests', ['status'])
    op.create_index('ix_discount_approval_requests_requested_by_email', 'discount_approval_requests', ['requested_by_email'])
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('message', sa.String(length=1024), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
    )
    op.create_index('ix_notifications_user_email', 'notifications', ['user_email'])


def downgrade() -> None:
    op.drop_index('ix_notifications_user_email', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_discount_approval_requests_requested_by_email', table_name='discount_approval_requests')
    op.drop_index('ix_discount_approval_requests_status', table_name='discount_approval_requests')
    op.drop_index('ix_discount_approval_requests_client_id', table_name='discount_approval_requests')
    op.drop_table('discount_approval_requests')
