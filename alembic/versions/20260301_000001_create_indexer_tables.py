"""Create orders, contract_metrics, sync_status and volume_snapshots tables

Revision ID: 20260301_000001
Revises:
Create Date: 2026-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260301_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Orders ingested from OrderCreated events
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chain_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(78), nullable=False),
        sa.Column('request_id', sa.String(66), nullable=False),
        sa.Column('user_wallet', sa.String(42), nullable=False),
        sa.Column('token_address', sa.String(42), nullable=False),
        sa.Column('amount', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chain_id', 'order_id', name='uq_orders_chain_order'),
        sa.UniqueConstraint('chain_id', 'tx_hash', name='uq_orders_chain_tx'),
    )
    op.create_index('ix_orders_request_id', 'orders', ['request_id'])
    op.create_index('ix_orders_chain_timestamp', 'orders', ['chain_id', 'timestamp'])
    op.create_index('ix_orders_user_timestamp', 'orders', ['user_wallet', 'timestamp'])
    op.create_index('ix_orders_token_timestamp', 'orders', ['token_address', 'timestamp'])

    # Contract counter snapshots
    op.create_table(
        'contract_metrics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chain_id', sa.Integer(), nullable=False),
        sa.Column('order_count', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('total_volume', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('successful_orders', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('failed_orders', sa.DECIMAL(78, 0), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contract_metrics_timestamp', 'contract_metrics', ['timestamp'])
    op.create_index('ix_contract_metrics_chain_timestamp', 'contract_metrics', ['chain_id', 'timestamp'])

    # Sync cursors and running flags
    op.create_table(
        'sync_status',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sync_type', sa.String(20), nullable=False),
        sa.Column('chain_id', sa.Integer(), nullable=False),
        sa.Column('last_sync_block', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_sync_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_running', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('failed_ranges', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('success_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sync_type', 'chain_id', name='uq_sync_status_type_chain'),
    )
    op.create_index('ix_sync_status_chain_id', 'sync_status', ['chain_id'])

    # Fiat volume rollups
    op.create_table(
        'volume_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('total_volume_usd', sa.Float(), nullable=False),
        sa.Column('total_volume_local', sa.Float(), nullable=False),
        sa.Column('local_currency', sa.String(8), nullable=False, server_default='ngn'),
        sa.Column('token_breakdown', sa.JSON(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_volume_snapshots_timestamp', 'volume_snapshots', ['timestamp'])


def downgrade() -> None:
    op.drop_index('ix_volume_snapshots_timestamp', 'volume_snapshots')
    op.drop_table('volume_snapshots')

    op.drop_index('ix_sync_status_chain_id', 'sync_status')
    op.drop_table('sync_status')

    op.drop_index('ix_contract_metrics_chain_timestamp', 'contract_metrics')
    op.drop_index('ix_contract_metrics_timestamp', 'contract_metrics')
    op.drop_table('contract_metrics')

    op.drop_index('ix_orders_token_timestamp', 'orders')
    op.drop_index('ix_orders_user_timestamp', 'orders')
    op.drop_index('ix_orders_chain_timestamp', 'orders')
    op.drop_index('ix_orders_request_id', 'orders')
    op.drop_table('orders')
