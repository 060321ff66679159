"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create ai_traders table
    op.create_table(
        'ai_traders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('personality', sa.Text(), nullable=False, server_default=''),
        sa.Column('model_name', sa.String(100), nullable=False),
        sa.Column('risk_tolerance', sa.String(20), nullable=False, server_default='moderate'),
        sa.Column('initial_balance', sa.Float(), nullable=False),
        sa.Column('current_balance', sa.Float(), nullable=False),
        sa.Column('total_trades', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('profit_loss_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('liquidated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_ai_traders_status', 'ai_traders', ['status'])

    # Create positions table
    op.create_table(
        'positions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('trader_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('asset', sa.String(20), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('average_buy_price', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['trader_id'], ['ai_traders.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('trader_id', 'asset', name='uq_positions_trader_asset')
    )
    op.create_index('ix_positions_trader_id', 'positions', ['trader_id'])

    # Create trades table
    op.create_table(
        'trades',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('trader_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('asset', sa.String(20), nullable=False),
        sa.Column('action', sa.String(10), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('slippage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('transaction_hash', sa.String(66), nullable=False),
        sa.Column('reasoning', sa.Text(), nullable=False, server_default=''),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['trader_id'], ['ai_traders.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('transaction_hash')
    )
    op.create_index('ix_trades_trader_id', 'trades', ['trader_id'])
    op.create_index('ix_trades_timestamp', 'trades', ['timestamp'])
    op.create_index('ix_trades_trader_timestamp', 'trades', ['trader_id', 'timestamp'])

    # Create market_snapshots table
    op.create_table(
        'market_snapshots',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('asset', sa.String(20), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('metadata', postgresql.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_market_snapshots_asset', 'market_snapshots', ['asset'])
    op.create_index('ix_market_snapshots_timestamp', 'market_snapshots', ['timestamp'])


def downgrade() -> None:
    op.drop_table('market_snapshots')
    op.drop_table('trades')
    op.drop_table('positions')
    op.drop_table('ai_traders')
