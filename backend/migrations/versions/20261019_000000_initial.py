"""Initial migration - users, identity ledger, marketplace, shop, trades

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('avatar', sa.String(length=512), nullable=True),
        sa.Column('coins', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('inventory', sa.Text(), nullable=True),
        sa.Column('inventory_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('synced_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('coins >= 0', name='ck_users_coins'),
        sa.PrimaryKeyConstraint('id')
    )

    # Create user_rules table
    op.create_table('user_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_user_rules_user_name')
    )
    op.create_index(op.f('ix_user_rules_user_id'), 'user_rules', ['user_id'], unique=False)

    # Create item_history table
    op.create_table('item_history',
        sa.Column('item_uuid', sa.String(length=36), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('wear', sa.Float(), nullable=True),
        sa.Column('seed', sa.Integer(), nullable=True),
        sa.Column('name_tag', sa.String(length=64), nullable=True),
        sa.Column('stickers', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.String(length=32), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        sa.Column('current_owner', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('item_uuid')
    )
    op.create_index(op.f('ix_item_history_item_id'), 'item_history', ['item_id'], unique=False)
    op.create_index(op.f('ix_item_history_created_by'), 'item_history', ['created_by'], unique=False)
    op.create_index(op.f('ix_item_history_current_owner'), 'item_history', ['current_owner'], unique=False)

    # Create item_transfers table
    op.create_table('item_transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_uuid', sa.String(length=36), nullable=False),
        sa.Column('from_user', sa.String(length=32), nullable=True),
        sa.Column('to_user', sa.String(length=32), nullable=False),
        sa.Column('transfer_type', sa.String(length=30), nullable=False),
        sa.Column('trade_id', sa.Integer(), nullable=True),
        sa.Column('listing_id', sa.Integer(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['item_uuid'], ['item_history.item_uuid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_item_transfers_item_uuid'), 'item_transfers', ['item_uuid'], unique=False)

    # Create marketplace_listings table
    op.create_table('marketplace_listings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.String(length=32), nullable=False),
        sa.Column('item_key', sa.String(length=64), nullable=False),
        sa.Column('item_uuid', sa.String(length=36), nullable=True),
        sa.Column('item_uid', sa.Integer(), nullable=True),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('item_data', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('buyer_id', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('sold_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('price > 0', name='ck_marketplace_listings_price'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['buyer_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_marketplace_listings_seller_id'), 'marketplace_listings', ['seller_id'], unique=False)
    op.create_index(op.f('ix_marketplace_listings_item_uuid'), 'marketplace_listings', ['item_uuid'], unique=False)
    op.create_index(op.f('ix_marketplace_listings_item_id'), 'marketplace_listings', ['item_id'], unique=False)
    op.create_index(op.f('ix_marketplace_listings_status'), 'marketplace_listings', ['status'], unique=False)
    op.create_index(op.f('ix_marketplace_listings_expires_at'), 'marketplace_listings', ['expires_at'], unique=False)
    # At most one active listing per physical item
    op.create_index(
        'uq_marketplace_listings_active_item',
        'marketplace_listings',
        ['item_uuid'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    # Create marketplace_price_history table
    op.create_table('marketplace_price_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('wear', sa.Float(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('listing_id', sa.Integer(), nullable=True),
        sa.Column('sold_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_marketplace_price_history_item_id'), 'marketplace_price_history', ['item_id'], unique=False)

    # Create currency_transactions table
    op.create_table('currency_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('reference_type', sa.String(length=30), nullable=True),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('related_user_id', sa.String(length=32), nullable=True),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_currency_transactions_user_id'), 'currency_transactions', ['user_id'], unique=False)

    # Create shop_items table
    op.create_table('shop_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=False, server_default='cases'),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # Create trade_offers table
    op.create_table('trade_offers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.String(length=32), nullable=False),
        sa.Column('receiver_id', sa.String(length=32), nullable=False),
        sa.Column('sender_items', sa.JSON(), nullable=False),
        sa.Column('receiver_items', sa.JSON(), nullable=False),
        sa.Column('sender_coins', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('receiver_coins', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('message', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['receiver_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trade_offers_sender_id'), 'trade_offers', ['sender_id'], unique=False)
    op.create_index(op.f('ix_trade_offers_receiver_id'), 'trade_offers', ['receiver_id'], unique=False)
    op.create_index(op.f('ix_trade_offers_status'), 'trade_offers', ['status'], unique=False)

    # Create case_openings table
    op.create_table('case_openings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=True),
        sa.Column('case_item_id', sa.Integer(), nullable=False),
        sa.Column('case_name', sa.String(length=255), nullable=True),
        sa.Column('key_item_id', sa.Integer(), nullable=True),
        sa.Column('key_name', sa.String(length=255), nullable=True),
        sa.Column('unlocked_item_id', sa.Integer(), nullable=False),
        sa.Column('unlocked_name', sa.String(length=255), nullable=True),
        sa.Column('unlocked_rarity', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_case_openings_user_id'), 'case_openings', ['user_id'], unique=False)
    op.create_index(op.f('ix_case_openings_created_at'), 'case_openings', ['created_at'], unique=False)


def downgrade():
    op.drop_table('case_openings')
    op.drop_table('trade_offers')
    op.drop_table('shop_items')
    op.drop_table('currency_transactions')
    op.drop_table('marketplace_price_history')
    op.drop_table('marketplace_listings')
    op.drop_table('item_transfers')
    op.drop_table('item_history')
    op.drop_table('user_rules')
    op.drop_table('users')
