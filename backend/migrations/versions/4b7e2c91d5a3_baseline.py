"""baseline: users, portfolios, stocks, stock_prices, portfolio_holdings

Revision ID: 4b7e2c91d5a3
Revises: 
Create Date: 2026-10-12 10:24:51.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b7e2c91d5a3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1. 创建 users 表
    op.create_table('users',
        sa.Column('user_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('pan_number', sa.String(length=10), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # 2. 创建 stocks 表 (参考数据)
    op.create_table('stocks',
        sa.Column('stock_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('sector', sa.String(length=100), nullable=True),
        sa.Column('exchange', sa.String(length=10), nullable=True),
        sa.Column('market_cap_category', sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint('stock_id')
    )
    op.create_index(op.f('ix_stocks_symbol'), 'stocks', ['symbol'], unique=True)

    # 3. 创建 portfolios 表
    op.create_table('portfolios',
        sa.Column('portfolio_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('portfolio_name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ),
        sa.PrimaryKeyConstraint('portfolio_id')
    )
    op.create_index(op.f('ix_portfolios_user_id'), 'portfolios', ['user_id'], unique=False)

    # 4. 创建 stock_prices 表 (每支股票每天一条)
    op.create_table('stock_prices',
        sa.Column('price_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('stock_id', sa.Integer(), nullable=False),
        sa.Column('price_date', sa.Date(), nullable=False),
        sa.Column('open_price', sa.Float(), nullable=True),
        sa.Column('high_price', sa.Float(), nullable=True),
        sa.Column('low_price', sa.Float(), nullable=True),
        sa.Column('close_price', sa.Float(), nullable=False),
        sa.Column('volume', sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(['stock_id'], ['stocks.stock_id'], ),
        sa.PrimaryKeyConstraint('price_id'),
        sa.UniqueConstraint('stock_id', 'price_date', name='uq_stock_prices_stock_date')
    )
    op.create_index(op.f('ix_stock_prices_stock_id'), 'stock_prices', ['stock_id'], unique=False)
    op.create_index(op.f('ix_stock_prices_price_date'), 'stock_prices', ['price_date'], unique=False)

    # 5. 创建 portfolio_holdings 表
    op.create_table('portfolio_holdings',
        sa.Column('holding_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('portfolio_id', sa.Integer(), nullable=False),
        sa.Column('stock_id', sa.Integer(), nullable=False),
        sa.Column('shares_held', sa.Float(), nullable=False),
        sa.Column('average_purchase_price', sa.Float(), nullable=False),
        sa.CheckConstraint('shares_held >= 0', name='ck_holding_shares_non_negative'),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.portfolio_id'], ),
        sa.ForeignKeyConstraint(['stock_id'], ['stocks.stock_id'], ),
        sa.PrimaryKeyConstraint('holding_id'),
        sa.UniqueConstraint('portfolio_id', 'stock_id', name='uq_holding_portfolio_stock')
    )
    op.create_index(op.f('ix_portfolio_holdings_portfolio_id'), 'portfolio_holdings', ['portfolio_id'], unique=False)
    op.create_index(op.f('ix_portfolio_holdings_stock_id'), 'portfolio_holdings', ['stock_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_portfolio_holdings_stock_id'), table_name='portfolio_holdings')
    op.drop_index(op.f('ix_portfolio_holdings_portfolio_id'), table_name='portfolio_holdings')
    op.drop_table('portfolio_holdings')
    op.drop_index(op.f('ix_stock_prices_price_date'), table_name='stock_prices')
    op.drop_index(op.f('ix_stock_prices_stock_id'), table_name='stock_prices')
    op.drop_table('stock_prices')
    op.drop_index(op.f('ix_portfolios_user_id'), table_name='portfolios')
    op.drop_table('portfolios')
    op.drop_index(op.f('ix_stocks_symbol'), table_name='stocks')
    op.drop_table('stocks')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
