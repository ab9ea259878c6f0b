"""Initial schema

This migration creates the complete database schema for FinTrack.

Tables:
    - users: User accounts
    - user_settings: EUR calibration state per user
    - portfolios: Portfolios owned by users
    - assets: Global asset registry with latest prices
    - holdings: Asset positions within portfolios
    - asset_calibrations: Per-user reference prices per asset

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # USERS
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # USER SETTINGS
    # ==========================================================================
    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, unique=True, index=True),
        sa.Column('eur_price_adjustment_factor', sa.Numeric(20, 10), nullable=False, server_default='1'),
        sa.Column('reference_portfolio_value', sa.Numeric(18, 2), nullable=True),
        sa.Column('last_calibration_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # PORTFOLIOS
    # ==========================================================================
    op.create_table(
        'portfolios',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Default portfolio lookup (oldest per user)
    op.create_index('ix_portfolio_user_created', 'portfolios', ['user_id', 'created_at'])

    # ==========================================================================
    # ASSETS
    # ==========================================================================
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('symbol', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.Enum('STOCK', 'CRYPTO', 'ETF', 'BOND', 'COMMODITY', name='assettype'), nullable=False),
        sa.Column('currency', sa.String(), nullable=False, server_default='USD'),
        sa.Column('current_price', sa.Numeric(18, 8), nullable=True),
        sa.Column('previous_close', sa.Numeric(18, 8), nullable=True),
        sa.Column('change_percent', sa.Numeric(10, 4), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # HOLDINGS
    # ==========================================================================
    op.create_table(
        'holdings',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('portfolio_id', sa.Integer(), sa.ForeignKey('portfolios.id'), nullable=False, index=True),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id'), nullable=False, index=True),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('avg_buy_price', sa.Numeric(18, 8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('portfolio_id', 'asset_id', name='uq_holding_portfolio_asset'),
    )

    # ==========================================================================
    # ASSET CALIBRATIONS
    # ==========================================================================
    op.create_table(
        'asset_calibrations',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id'), nullable=False, index=True),
        sa.Column('adjustment_factor', sa.Numeric(20, 10), nullable=False, server_default='1'),
        sa.Column('reference_price', sa.Numeric(18, 8), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'asset_id', name='uq_asset_calibration_user_asset'),
    )


def downgrade() -> None:
    op.drop_table('asset_calibrations')
    op.drop_table('holdings')
    op.drop_table('assets')
    op.drop_index('ix_portfolio_user_created', table_name='portfolios')
    op.drop_table('portfolios')
    op.drop_table('user_settings')
    op.drop_table('users')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS assettype')
