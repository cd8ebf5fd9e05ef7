"""initial schema

Revision ID: 3f9a1c7e2b54
Revises:
Create Date: 2026-10-19 10:40:12.418233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a1c7e2b54'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        'id',
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        nullable=False,
        server_default=sa.text('gen_random_uuid()'),
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        'tbl_users',
        _uuid_pk(),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=8), nullable=False, server_default='investor'),
        sa.Column('plan_key', sa.String(length=20), nullable=False, server_default='free'),
        sa.Column('plan_status', sa.String(length=7), nullable=False, server_default='active'),
        sa.Column('plan_renewal', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'tbl_projects',
        _uuid_pk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('min_investment', sa.Numeric(14, 2), nullable=False),
        sa.Column('roi_percent', sa.Numeric(7, 2), nullable=False),
        sa.Column('target_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('funded_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_investors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_months', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='active'),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_users.id'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('min_investment >= 0', name='ck_projects_min_investment'),
        sa.CheckConstraint('roi_percent >= 0 AND roi_percent <= 1000', name='ck_projects_roi_percent'),
        sa.CheckConstraint('target_amount >= 0', name='ck_projects_target_amount'),
        sa.CheckConstraint('funded_amount >= 0', name='ck_projects_funded_amount'),
        sa.CheckConstraint('total_investors >= 0', name='ck_projects_total_investors'),
        sa.CheckConstraint('duration_months >= 1 AND duration_months <= 240', name='ck_projects_duration'),
    )
    op.create_index('ix_projects_status', 'tbl_projects', ['status'])
    op.create_index('ix_projects_category', 'tbl_projects', ['category'])
    op.create_index('ix_projects_created_at', 'tbl_projects', ['created_at'])
    op.create_index('ix_projects_roi_percent', 'tbl_projects', ['roi_percent'])
    op.create_index('ix_projects_is_premium', 'tbl_projects', ['is_premium'])

    op.create_table(
        'tbl_investments',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_users.id'), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_projects.id'), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='pending'),
        sa.Column('payment_method', sa.String(length=13), nullable=False),
        sa.Column('investment_date', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('expected_return', sa.Numeric(14, 2), nullable=False),
        sa.Column('expected_return_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('actual_return', sa.Numeric(14, 2), nullable=True),
        sa.Column('actual_return_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        sa.Column('refund_reason', sa.String(length=500), nullable=True),
        sa.Column('refund_date', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_investments_amount'),
    )
    op.create_index('ix_tbl_investments_user_id', 'tbl_investments', ['user_id'])
    op.create_index('ix_tbl_investments_project_id', 'tbl_investments', ['project_id'])
    op.create_index('ix_tbl_investments_transaction_id', 'tbl_investments', ['transaction_id'])
    op.create_index('ix_investments_user_created', 'tbl_investments', ['user_id', 'created_at'])
    op.create_index('ix_investments_project_status', 'tbl_investments', ['project_id', 'status'])
    op.create_index('ix_investments_status_date', 'tbl_investments', ['status', 'investment_date'])

    op.create_table(
        'tbl_payments',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_users.id'), nullable=False),
        sa.Column('investment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_investments.id'), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='pending'),
        sa.Column('method', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('transaction_id', name='uq_payments_transaction_id'),
    )
    op.create_index('ix_tbl_payments_user_id', 'tbl_payments', ['user_id'])
    op.create_index('ix_tbl_payments_investment_id', 'tbl_payments', ['investment_id'])

    op.create_table(
        'tbl_notifications',
        _uuid_pk(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=12), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('data', sa.Text(), nullable=True),
        sa.Column('read_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_notifications_user_read', 'tbl_notifications', ['user_id', 'read_at'])

    op.create_table(
        'tbl_user_notification_prefs',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('muted_types', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('tbl_user_notification_prefs')
    op.drop_index('ix_notifications_user_read', table_name='tbl_notifications')
    op.drop_table('tbl_notifications')
    op.drop_index('ix_tbl_payments_investment_id', table_name='tbl_payments')
    op.drop_index('ix_tbl_payments_user_id', table_name='tbl_payments')
    op.drop_table('tbl_payments')
    for index in (
        'ix_investments_status_date',
        'ix_investments_project_status',
        'ix_investments_user_created',
        'ix_tbl_investments_transaction_id',
        'ix_tbl_investments_project_id',
        'ix_tbl_investments_user_id',
    ):
        op.drop_index(index, table_name='tbl_investments')
    op.drop_table('tbl_investments')
    for index in (
        'ix_projects_is_premium',
        'ix_projects_roi_percent',
        'ix_projects_created_at',
        'ix_projects_category',
        'ix_projects_status',
    ):
        op.drop_index(index, table_name='tbl_projects')
    op.drop_table('tbl_projects')
    op.drop_table('tbl_users')
