"""create_storefront_tables

Revision ID: 4c7e2a91d0b3
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = '4c7e2a91d0b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

product_unit = sa.Enum('box', 'dozen', 'both', name='storefront_product_unit_enum')
order_status = sa.Enum(
    'pending', 'confirmed', 'processing', 'out_for_delivery', 'delivered', 'cancelled',
    name='storefront_order_status_enum',
)
payment_status = sa.Enum(
    'pending', 'paid', 'failed', 'refunded', name='storefront_payment_status_enum'
)
payment_method = sa.Enum('cod', 'online', 'upi', name='storefront_payment_method_enum')


def upgrade() -> None:
    """Upgrade schema - Add storefront tables."""

    # Store configuration document, one row per tenant
    op.create_table(
        'storefront_store_configs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('store_address', JSONB(), nullable=True),
        sa.Column('delivery_fee', JSONB(), nullable=False),
        sa.Column('cart_discounts', JSONB(), nullable=True),
        sa.Column('delivery_slots', JSONB(), nullable=True),
        sa.Column('is_delivery_enabled', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'uq_storefront_store_configs_tenant',
        'storefront_store_configs',
        [sa.text("coalesce(tenant_id, '')")],
        unique=True,
    )

    op.create_table(
        'storefront_categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'storefront_products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=256), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('mrp', sa.Numeric(12, 2), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('unit', product_unit, nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['category_id'], ['storefront_categories.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_storefront_products_active_created',
        'storefront_products',
        ['is_active', 'created_at'],
    )
    op.create_index(
        'ix_storefront_products_category_active',
        'storefront_products',
        ['category_id', 'is_active'],
    )

    op.create_table(
        'storefront_carts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('items', JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'storefront_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('items', JSONB(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('applied_discount_rule', JSONB(), nullable=True),
        sa.Column('delivery_address', JSONB(), nullable=False),
        sa.Column('delivery_slot', JSONB(), nullable=True),
        sa.Column('status', order_status, server_default='pending', nullable=False),
        sa.Column('payment_status', payment_status, server_default='pending', nullable=False),
        sa.Column('payment_method', payment_method, server_default='cod', nullable=False),
        sa.Column('notes', sa.Text(), server_default='', nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_storefront_orders_order_number',
        'storefront_orders',
        ['order_number'],
        unique=True,
    )
    op.create_index(
        'ix_storefront_orders_user_created',
        'storefront_orders',
        ['user_id', 'created_at'],
    )
    op.create_index('ix_storefront_orders_status', 'storefront_orders', ['status'])


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables."""
    op.drop_index('ix_storefront_orders_status', table_name='storefront_orders')
    op.drop_index('ix_storefront_orders_user_created', table_name='storefront_orders')
    op.drop_index('ix_storefront_orders_order_number', table_name='storefront_orders')
    op.drop_table('storefront_orders')
    op.drop_table('storefront_carts')
    op.drop_index('ix_storefront_products_category_active', table_name='storefront_products')
    op.drop_index('ix_storefront_products_active_created', table_name='storefront_products')
    op.drop_table('storefront_products')
    op.drop_table('storefront_categories')
    op.drop_index('uq_storefront_store_configs_tenant', table_name='storefront_store_configs')
    op.drop_table('storefront_store_configs')

    for enum in (payment_method, payment_status, order_status, product_unit):
        enum.drop(op.get_bind(), checkfirst=True)
