"""Add crypto columns to users and create crypto_transactions

Revision ID: 20261018_000001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users is created by the account subsystem
    op.add_column('users', sa.Column('eth_wallet_address', sa.String(42), nullable=True))
    op.add_column('users', sa.Column('eth_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'))
    op.add_column('users', sa.Column('eth_balance_inr', sa.DECIMAL(15, 2), nullable=False, server_default='0'))
    op.add_column('users', sa.Column('last_eth_sync', sa.DateTime(timezone=True), nullable=True))
    op.create_index('ix_users_eth_wallet_address', 'users', ['eth_wallet_address'])

    op.create_table(
        'crypto_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(20), nullable=False, server_default='purchase'),
        sa.Column('amount_inr', sa.DECIMAL(15, 2), nullable=False),
        sa.Column('amount_eth', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('eth_price', sa.DECIMAL(15, 2), nullable=False, comment='ETH price in INR at execution'),
        sa.Column('tx_hash', sa.String(66), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_simulated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_crypto_transactions_user_id', 'crypto_transactions', ['user_id'])
    op.create_index('ix_crypto_transactions_tx_hash', 'crypto_transactions', ['tx_hash'])
    op.create_index('ix_crypto_transactions_status', 'crypto_transactions', ['status'])
    op.create_index('ix_crypto_transactions_created_at', 'crypto_transactions', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_crypto_transactions_created_at', 'crypto_transactions')
    op.drop_index('ix_crypto_transactions_status', 'crypto_transactions')
    op.drop_index('ix_crypto_transactions_tx_hash', 'crypto_transactions')
    op.drop_index('ix_crypto_transactions_user_id', 'crypto_transactions')
    op.drop_table('crypto_transactions')

    op.drop_index('ix_users_eth_wallet_address', 'users')
    op.drop_column('users', 'last_eth_sync')
    op.drop_column('users', 'eth_balance_inr')
    op.drop_column('users', 'eth_balance')
    op.drop_column('users', 'eth_wallet_address')
