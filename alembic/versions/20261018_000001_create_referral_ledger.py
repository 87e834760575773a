"""Create referral ledger schema.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Create accounts, referrals, ledger and analytics tables."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('external_ref', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_external_ref', 'accounts', ['external_ref'], unique=True)

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_code', sa.String(32), nullable=False),
        sa.Column('referrer_account_id', sa.Integer(), nullable=False),
        sa.Column('referred_account_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('reward_status', sa.String(20), nullable=False, server_default='UNCREDITED', comment='UNCREDITED -> CREDITED, once'),
        sa.Column('channel', sa.String(50), nullable=True),
        sa.Column('reward_value', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('referred_reward_value', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('signed_up_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('credited_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['referrer_account_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['referred_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_referrals_referral_code', 'referrals', ['referral_code'], unique=True)
    op.create_index('ix_referrals_referrer_account_id', 'referrals', ['referrer_account_id'])
    op.create_index('ix_referrals_referred_account_id', 'referrals', ['referred_account_id'])
    op.create_index('ix_referrals_status', 'referrals', ['status'])
    op.create_index('ix_referrals_reward_status', 'referrals', ['reward_status'])
    op.create_index('idx_referrals_referrer_reward_status', 'referrals', ['referrer_account_id', 'reward_status'])

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False, comment='Per-account position, starts at 1'),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('balance_after', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('source_type', sa.String(32), nullable=False),
        sa.Column('reference_id', sa.String(64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'sequence', name='uq_ledger_entries_account_sequence')
    )
    op.create_index('ix_ledger_entries_account_id', 'ledger_entries', ['account_id'])
    op.create_index('ix_ledger_entries_source_type', 'ledger_entries', ['source_type'])
    op.create_index('idx_ledger_entries_source', 'ledger_entries', ['source_type', 'reference_id'])

    op.create_table(
        'share_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_account_id', sa.Integer(), nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=True),
        sa.Column('channel', sa.String(50), nullable=True),
        sa.Column('event_type', sa.String(20), nullable=False, server_default='share'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referrer_account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_share_events_referrer_account_id', 'share_events', ['referrer_account_id'])
    op.create_index('ix_share_events_created_at', 'share_events', ['created_at'])

    op.create_table(
        'reward_rate_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reward_type', sa.String(20), nullable=False, server_default='credit'),
        sa.Column('referrer_reward_value', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('referred_reward_value', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('referrer_reward_percent', sa.DECIMAL(7, 2), nullable=False, server_default='0'),
        sa.Column('referred_reward_percent', sa.DECIMAL(7, 2), nullable=False, server_default='0'),
        sa.Column('milestone_rules', JSON, nullable=False, comment='[{"count": int, "bonus": number}]'),
        sa.Column('reward_cap', sa.DECIMAL(18, 8), nullable=True, comment='Monthly referrer reward cap'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reward_rate_settings_is_active', 'reward_rate_settings', ['is_active'])

    op.create_table(
        'milestone_awards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('threshold', sa.Integer(), nullable=False),
        sa.Column('bonus_amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('ledger_entry_id', sa.Integer(), nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['ledger_entry_id'], ['ledger_entries.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'threshold', name='uq_milestone_awards_account_threshold')
    )
    op.create_index('ix_milestone_awards_account_id', 'milestone_awards', ['account_id'])

    op.create_table(
        'analytics_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('period_date', sa.Date(), nullable=False),
        sa.Column('period_type', sa.String(20), nullable=False),
        sa.Column('total_sent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_signups', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_conversions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('conversion_rate', sa.DECIMAL(7, 2), nullable=False, server_default='0'),
        sa.Column('total_rewards_paid', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('total_shares', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_clicks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('channel_breakdown', JSON, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('period_date', 'period_type', name='uq_analytics_snapshots_period')
    )


def downgrade() -> None:
    """Drop referral ledger schema."""
    op.drop_table('analytics_snapshots')
    op.drop_index('ix_milestone_awards_account_id', table_name='milestone_awards')
    op.drop_table('milestone_awards')
    op.drop_index('ix_reward_rate_settings_is_active', table_name='reward_rate_settings')
    op.drop_table('reward_rate_settings')
    op.drop_index('ix_share_events_created_at', table_name='share_events')
    op.drop_index('ix_share_events_referrer_account_id', table_name='share_events')
    op.drop_table('share_events')
    op.drop_index('idx_ledger_entries_source', table_name='ledger_entries')
    op.drop_index('ix_ledger_entries_source_type', table_name='ledger_entries')
    op.drop_index('ix_ledger_entries_account_id', table_name='ledger_entries')
    op.drop_table('ledger_entries')
    op.drop_index('idx_referrals_referrer_reward_status', table_name='referrals')
    op.drop_index('ix_referrals_reward_status', table_name='referrals')
    op.drop_index('ix_referrals_status', table_name='referrals')
    op.drop_index('ix_referrals_referred_account_id', table_name='referrals')
    op.drop_index('ix_referrals_referrer_account_id', table_name='referrals')
    op.drop_index('ix_referrals_referral_code', table_name='referrals')
    op.drop_table('referrals')
    op.drop_index('ix_accounts_external_ref', table_name='accounts')
    op.drop_table('accounts')
