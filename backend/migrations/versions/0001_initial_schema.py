"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete Sinari schema:
- users: accounts with role and single bearer session
- products / product_logs: inventory with append-only stock audit log
- technicians / services / service_items / service_logs: repair tickets
- store_settings: singleton receipt configuration (id = 1)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='CUSTOMER'),
        sa.Column('token_hash', sa.String(length=64), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('google_id', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('token_hash'),
        sa.UniqueConstraint('google_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role', 'users', ['role'])

    # ============================================================================
    # products: stock >= 0 enforced in the database as well
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('brand', sa.String(length=32), nullable=False),
        sa.Column('manufacturer', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('cost_price', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_signature', 'products', ['name', 'brand', 'manufacturer', 'category'])
    op.create_index('ix_products_deleted_at', 'products', ['deleted_at'])

    # ============================================================================
    # product_logs: append-only; only is_voided may change (once)
    # ============================================================================
    op.create_table(
        'product_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_revenue', sa.Integer(), nullable=True),
        sa.Column('total_profit', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('is_voided', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_logs_product_id', 'product_logs', ['product_id'])
    op.create_index('ix_product_logs_user_id', 'product_logs', ['user_id'])
    op.create_index('ix_product_logs_product_created', 'product_logs', ['product_id', 'created_at'])
    op.create_index('ix_product_logs_action_created', 'product_logs', ['action', 'created_at'])

    # ============================================================================
    # technicians
    # ============================================================================
    op.create_table(
        'technicians',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('signature_url', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # services: repair tickets
    # ============================================================================
    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_id', sa.String(length=16), nullable=False),
        sa.Column('tracking_token', sa.String(length=36), nullable=False),
        sa.Column('brand', sa.String(length=32), nullable=False),
        sa.Column('model', sa.String(length=100), nullable=False),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('technician_note', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('discount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('down_payment', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('technician_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['technician_id'], ['technicians.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('service_id'),
        sa.UniqueConstraint('tracking_token'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_services_technician_id', 'services', ['technician_id'])
    op.create_index('ix_services_status_updated', 'services', ['status', 'updated_at'])
    op.create_index('ix_services_deleted_at', 'services', ['deleted_at'])

    op.create_table(
        'service_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_service_items_service_id', 'service_items', ['service_id'])

    op.create_table(
        'service_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('service_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_service_logs_service_id', 'service_logs', ['service_id'])
    op.create_index('ix_service_logs_user_id', 'service_logs', ['user_id'])
    op.create_index('ix_service_logs_service_created', 'service_logs', ['service_id', 'created_at'])

    # ============================================================================
    # store_settings: singleton row id = 1, inserted on first update
    # ============================================================================
    op.create_table(
        'store_settings',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('store_name', sa.String(length=100), nullable=False),
        sa.Column('store_address', sa.String(length=500), nullable=False),
        sa.Column('store_phone', sa.String(length=15), nullable=False),
        sa.Column('store_email', sa.String(length=100), nullable=True),
        sa.Column('store_website', sa.String(length=100), nullable=True),
        sa.Column('warranty_text', sa.Text(), nullable=False),
        sa.Column('payment_info', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('store_settings')
    op.drop_table('service_logs')
    op.drop_table('service_items')
    op.drop_table('services')
    op.drop_table('technicians')
    op.drop_table('product_logs')
    op.drop_table('products')
    op.drop_table('users')
