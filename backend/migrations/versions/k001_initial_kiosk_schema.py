"""initial kiosk schema

Revision ID: k001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete multi-tenant kiosk schema:
- tenants, users, session_tokens: tenancy and authentication
- categories, sizes, addons, products (+ link tables): catalog
- transactions, transaction_items, transaction_item_addons: register sales
- expenses: operating costs
- inventory_items, inventory_records: append-only stock counts
- submitted_reports: frozen end-of-day snapshots

Transactions and expenses carry the void request/review columns.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'k001'
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


def _void_columns():
    return [
        sa.Column('void_status', sa.String(length=16), nullable=False, server_default='NONE'),
        sa.Column('void_reason', sa.String(length=500), nullable=True),
        sa.Column('void_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('void_reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('void_rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('void_requested_by', sa.String(length=64), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('void_reviewed_by', sa.String(length=64), sa.ForeignKey('users.id'), nullable=True),
    ]


def upgrade():
    # ============================================================================
    # tenancy + auth
    # ============================================================================
    op.create_table(
        'tenants',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('logo_url', sa.String(length=512), nullable=True),
        sa.Column('theme_colors', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenants_slug', 'tenants', ['slug'], unique=True)
    op.create_index('ix_tenants_is_active', 'tenants', ['is_active'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='CASHIER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'username', name='uq_users_tenant_username'),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_users_tenant_email'),
    )
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'])
    op.create_index('ix_users_username', 'users', ['username'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_tenant_id', 'session_tokens', ['tenant_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)

    # ============================================================================
    # catalog: caller-chosen string ids
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sequence_no', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_categories_tenant_id', 'categories', ['tenant_id'])
    op.create_index('ix_categories_tenant_sequence', 'categories', ['tenant_id', 'sequence_no'])

    op.create_table(
        'sizes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('price_modifier_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('volume', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sizes_tenant_id', 'sizes', ['tenant_id'])

    op.create_table(
        'addons',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_addons_tenant_id', 'addons', ['tenant_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('category_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_tenant_name', 'products', ['tenant_id', 'name'])

    op.create_table(
        'product_sizes',
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('size_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['size_id'], ['sizes.id'], ),
        sa.PrimaryKeyConstraint('product_id', 'size_id'),
    )

    op.create_table(
        'product_addons',
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('addon_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['addon_id'], ['addons.id'], ),
        sa.PrimaryKeyConstraint('product_id', 'addon_id'),
    )

    # ============================================================================
    # sales
    # ============================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        sa.Column('cash_received_cents', sa.Integer(), nullable=True),
        sa.Column('change_cents', sa.Integer(), nullable=True),
        sa.Column('reference_number', sa.String(length=64), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        *_void_columns(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transactions_tenant_id', 'transactions', ['tenant_id'])
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_receipt_number', 'transactions', ['receipt_number'])
    op.create_index('ix_transactions_payment_method', 'transactions', ['payment_method'])
    op.create_index('ix_transactions_payment_status', 'transactions', ['payment_status'])
    op.create_index('ix_transactions_void_status', 'transactions', ['void_status'])
    op.create_index('ix_transactions_tenant_occurred', 'transactions', ['tenant_id', 'occurred_at'])

    op.create_table(
        'transaction_items',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('size_id', sa.String(length=64), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['size_id'], ['sizes.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transaction_items_transaction_id', 'transaction_items', ['transaction_id'])
    op.create_index('ix_transaction_items_product_id', 'transaction_items', ['product_id'])

    op.create_table(
        'transaction_item_addons',
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('addon_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['item_id'], ['transaction_items.id'], ),
        sa.ForeignKeyConstraint(['addon_id'], ['addons.id'], ),
        sa.PrimaryKeyConstraint('item_id', 'addon_id'),
    )

    op.create_table(
        'expenses',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('receipt', sa.String(length=512), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        *_void_columns(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_expenses_tenant_id', 'expenses', ['tenant_id'])
    op.create_index('ix_expenses_user_id', 'expenses', ['user_id'])
    op.create_index('ix_expenses_category', 'expenses', ['category'])
    op.create_index('ix_expenses_void_status', 'expenses', ['void_status'])
    op.create_index('ix_expenses_tenant_date', 'expenses', ['tenant_id', 'date'])

    # ============================================================================
    # inventory: append-only counts
    # ============================================================================
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('min_stock_level', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inventory_items_tenant_id', 'inventory_items', ['tenant_id'])
    op.create_index('ix_inventory_items_category', 'inventory_items', ['category'])

    op.create_table(
        'inventory_records',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('inventory_item_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inventory_records_tenant_id', 'inventory_records', ['tenant_id'])
    op.create_index('ix_inventory_records_inventory_item_id', 'inventory_records', ['inventory_item_id'])
    op.create_index('ix_inventory_records_item_date', 'inventory_records', ['inventory_item_id', 'date'])

    # ============================================================================
    # submitted_reports: immutable snapshots
    # ============================================================================
    op.create_table(
        'submitted_reports',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sales_snapshot', sa.JSON(), nullable=False),
        sa.Column('expenses_snapshot', sa.JSON(), nullable=False),
        sa.Column('summary_snapshot', sa.JSON(), nullable=False),
        sa.Column('transaction_ids', sa.JSON(), nullable=False),
        sa.Column('expense_ids', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_submitted_reports_tenant_id', 'submitted_reports', ['tenant_id'])
    op.create_index('ix_submitted_reports_user_id', 'submitted_reports', ['user_id'])
    op.create_index('ix_submitted_reports_report_date', 'submitted_reports', ['report_date'])
    op.create_index('ix_submitted_reports_tenant_submitted', 'submitted_reports', ['tenant_id', 'submitted_at'])


def downgrade():
    for table in (
        'submitted_reports',
        'inventory_records',
        'inventory_items',
        'expenses',
        'transaction_item_addons',
        'transaction_items',
        'transactions',
        'product_addons',
        'product_sizes',
        'products',
        'addons',
        'sizes',
        'categories',
        'session_tokens',
        'users',
        'tenants',
    ):
        op.drop_table(table)
