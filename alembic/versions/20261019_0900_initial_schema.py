"""Initial back office schema

Revision ID: 20261019_0900_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Companies and users, currencies and exchange rates, financial years, the
chart of accounts, journal entries, opening balances, the general ledger,
sales orders and invoices, and product/bank master data.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20261019_0900_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'userrole': ('ADMIN', 'MANAGER', 'ACCOUNTANT', 'CASHIER'),
    'accountcategory': ('ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE'),
    'accountnature': ('DEBIT', 'CREDIT'),
    'accountstatus': ('ACTIVE', 'INACTIVE'),
    'codetype': ('CODE', 'REFERENCE_NUMBER', 'BARCODE', 'INVOICE_NUMBER', 'RECEIPT_NUMBER'),
    'autocodestatus': ('ACTIVE', 'INACTIVE'),
    'salesorderstatus': ('DRAFT', 'SENT', 'ACCEPTED', 'REJECTED', 'EXPIRED', 'DELIVERED'),
    'salesinvoicestatus': (
        'DRAFT', 'SENT', 'APPROVED', 'PAID', 'PARTIAL_PAID', 'OVERDUE', 'CANCELLED', 'REJECTED',
    ),
    'paymentstatus': ('UNPAID', 'PARTIAL', 'PAID', 'OVERPAID'),
}


def _enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True)


def _company_id():
    return sa.Column(
        'company_id', postgresql.UUID(as_uuid=True),
        sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False,
    )


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _audit():
    return [
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('updated_by_id', postgresql.UUID(as_uuid=True), nullable=True),
    ]


def _fk(column, table, ondelete, nullable=True):
    return sa.Column(
        column, postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f'{table}.id', ondelete=ondelete), nullable=nullable,
    )


def _money(name):
    return sa.Column(name, sa.Numeric(18, 2), nullable=False)


def _sales_document_columns():
    return [
        sa.Column('store_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=True),
        _fk('currency_id', 'currencies', 'RESTRICT', nullable=False),
        _fk('system_default_currency_id', 'currencies', 'SET NULL'),
        _fk('exchange_rate_id', 'exchange_rates', 'SET NULL'),
        _fk('financial_year_id', 'financial_years', 'RESTRICT', nullable=False),
        sa.Column('exchange_rate', sa.Numeric(15, 6), nullable=False),
        _money('subtotal'),
        _money('tax_amount'),
        _money('discount_amount'),
        _money('total_amount'),
        _money('amount_after_discount'),
        _money('total_wht_amount'),
        _money('amount_after_wht'),
        _money('equivalent_amount'),
        sa.Column('delivery_date', sa.Date, nullable=True),
        sa.Column('shipping_address', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('terms_conditions', sa.Text, nullable=True),
        sa.Column('sent_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text, nullable=True),
    ]


def _sales_line_columns():
    return [
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('line_number', sa.Integer, nullable=False),
        sa.Column('quantity', sa.Numeric(18, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(18, 2), nullable=False),
        sa.Column('discount_percentage', sa.Numeric(5, 2), nullable=False),
        _money('discount_amount'),
        sa.Column('tax_percentage', sa.Numeric(5, 2), nullable=False),
        _money('tax_amount'),
        _money('wht_amount'),
        sa.Column('exchange_rate', sa.Numeric(15, 6), nullable=False),
        _money('equivalent_amount'),
        _money('amount_after_discount'),
        _money('amount_after_wht'),
        _money('line_total'),
        sa.Column('notes', sa.Text, nullable=True),
        _fk('income_account_id', 'accounts', 'SET NULL'),
    ]


def upgrade() -> None:
    for name in ENUMS:
        _enum(name).create(op.get_bind(), checkfirst=True)

    # =========================================================================
    # TENANCY
    # =========================================================================
    op.create_table(
        'companies',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('code', name='uq_companies_code'),
    )

    op.create_table(
        'users',
        _id(),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', _enum('userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('is_system_admin', sa.Boolean, nullable=False),
        _fk('company_id', 'companies', 'CASCADE'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    # =========================================================================
    # CURRENCIES AND FINANCIAL YEARS
    # =========================================================================
    op.create_table(
        'currencies',
        _id(),
        _company_id(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('symbol', sa.String(10), nullable=False),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('flag', sa.String(16), nullable=True),
        sa.Column('is_default', sa.Boolean, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('code', 'company_id', name='uq_currencies_code_company'),
    )
    op.create_index('ix_currencies_company_id', 'currencies', ['company_id'])
    op.create_index('ix_currencies_company_default', 'currencies', ['company_id', 'is_default'])

    op.create_table(
        'exchange_rates',
        _id(),
        _company_id(),
        _fk('from_currency_id', 'currencies', 'CASCADE', nullable=False),
        _fk('to_currency_id', 'currencies', 'CASCADE', nullable=False),
        sa.Column('rate', sa.Numeric(15, 6), nullable=False),
        sa.Column('effective_date', sa.Date, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint(
            'from_currency_id', 'to_currency_id', 'effective_date', 'company_id',
            name='uq_exchange_rates_pair_date_company',
        ),
        sa.CheckConstraint('rate > 0', name='rate_positive'),
    )
    op.create_index('ix_exchange_rates_company_id', 'exchange_rates', ['company_id'])
    op.create_index(
        'ix_exchange_rates_pair', 'exchange_rates', ['from_currency_id', 'to_currency_id', 'effective_date'],
    )

    op.create_table(
        'financial_years',
        _id(),
        _company_id(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_current', sa.Boolean, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('is_closed', sa.Boolean, nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('closing_notes', sa.Text, nullable=True),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('name', 'company_id', name='uq_financial_years_name_company'),
        sa.CheckConstraint('start_date < end_date', name='start_before_end'),
    )
    op.create_index('ix_financial_years_company_id', 'financial_years', ['company_id'])

    # =========================================================================
    # CHART OF ACCOUNTS
    # =========================================================================
    op.create_table(
        'account_types',
        _id(),
        _company_id(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('category', _enum('accountcategory'), nullable=False),
        sa.Column('nature', _enum('accountnature'), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('name', 'company_id', name='uq_account_types_name_company'),
        sa.UniqueConstraint('code', 'company_id', name='uq_account_types_code_company'),
    )
    op.create_index('ix_account_types_company_id', 'account_types', ['company_id'])

    op.create_table(
        'accounts',
        _id(),
        _company_id(),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('type', _enum('accountcategory'), nullable=False),
        sa.Column('nature', _enum('accountnature'), nullable=False),
        _fk('account_type_id', 'account_types', 'RESTRICT', nullable=False),
        _fk('parent_id', 'accounts', 'RESTRICT'),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('status', _enum('accountstatus'), nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('code', 'company_id', name='uq_accounts_code_company'),
    )
    op.create_index('ix_accounts_company_id', 'accounts', ['company_id'])
    op.create_index('ix_accounts_company_type', 'accounts', ['company_id', 'account_type_id'])

    # =========================================================================
    # MASTER DATA
    # =========================================================================
    op.create_table(
        'auto_codes',
        _id(),
        _company_id(),
        sa.Column('module_name', sa.String(100), nullable=False),
        sa.Column('module_display_name', sa.String(255), nullable=False),
        sa.Column('code_type', _enum('codetype'), nullable=False),
        sa.Column('prefix', sa.String(20), nullable=False),
        sa.Column('format', sa.String(100), nullable=False),
        sa.Column('next_number', sa.Integer, nullable=False),
        sa.Column('number_padding', sa.Integer, nullable=False),
        sa.Column('last_used', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', _enum('autocodestatus'), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('module_name', 'company_id', name='uq_auto_codes_module_company'),
        sa.CheckConstraint('next_number >= 1', name='next_number_positive'),
        sa.CheckConstraint('number_padding BETWEEN 1 AND 10', name='number_padding_range'),
    )
    op.create_index('ix_auto_codes_company_id', 'auto_codes', ['company_id'])

    op.create_table(
        'bank_details',
        _id(),
        _company_id(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('bank_name', sa.String(100), nullable=False),
        sa.Column('branch', sa.String(100), nullable=False),
        sa.Column('account_number', sa.String(100), nullable=False),
        _fk('account_id', 'accounts', 'SET NULL'),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('code', 'company_id', name='uq_bank_details_code_company'),
    )
    op.create_index('ix_bank_details_company_id', 'bank_details', ['company_id'])

    op.create_table(
        'product_colors',
        _id(),
        _company_id(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('hex_code', sa.String(7), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('code', 'company_id', name='uq_product_colors_code_company'),
    )
    op.create_index('ix_product_colors_company_id', 'product_colors', ['company_id'])

    op.create_table(
        'product_models',
        _id(),
        _company_id(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('brand', sa.String(100), nullable=True),
        sa.Column('model_number', sa.String(100), nullable=True),
        sa.Column('specifications', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('code', 'company_id', name='uq_product_models_code_company'),
    )
    op.create_index('ix_product_models_company_id', 'product_models', ['company_id'])

    # =========================================================================
    # JOURNAL ENTRIES, OPENING BALANCES AND GENERAL LEDGER
    # =========================================================================
    op.create_table(
        'journal_entries',
        _id(),
        _company_id(),
        sa.Column('reference_number', sa.String(100), nullable=False),
        sa.Column('entry_date', sa.Date, nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        _fk('financial_year_id', 'financial_years', 'RESTRICT', nullable=False),
        _fk('currency_id', 'currencies', 'SET NULL'),
        sa.Column('total_debit', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_credit', sa.Numeric(15, 2), nullable=False),
        sa.Column('is_posted', sa.Boolean, nullable=False),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('posted_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('reference_number', 'company_id', name='uq_journal_entries_reference_company'),
    )
    op.create_index('ix_journal_entries_company_id', 'journal_entries', ['company_id'])
    op.create_index('ix_journal_entries_company_year', 'journal_entries', ['company_id', 'financial_year_id'])

    op.create_table(
        'journal_entry_lines',
        _id(),
        _company_id(),
        _fk('journal_entry_id', 'journal_entries', 'CASCADE', nullable=False),
        _fk('account_id', 'accounts', 'RESTRICT', nullable=False),
        _fk('account_type_id', 'account_types', 'SET NULL'),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('original_amount', sa.Numeric(24, 4), nullable=False),
        sa.Column('equivalent_amount', sa.Numeric(24, 4), nullable=False),
        _fk('currency_id', 'currencies', 'SET NULL'),
        _fk('exchange_rate_id', 'exchange_rates', 'SET NULL'),
        sa.Column('exchange_rate', sa.Numeric(15, 6), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('line_number', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_journal_entry_lines_company_id', 'journal_entry_lines', ['company_id'])
    op.create_index('ix_journal_entry_lines_journal_entry_id', 'journal_entry_lines', ['journal_entry_id'])

    op.create_table(
        'opening_balances',
        _id(),
        _company_id(),
        sa.Column('reference_number', sa.String(100), nullable=False),
        _fk('account_id', 'accounts', 'CASCADE', nullable=False),
        _fk('account_type_id', 'account_types', 'SET NULL'),
        _fk('financial_year_id', 'financial_years', 'RESTRICT', nullable=False),
        sa.Column('balance_date', sa.Date, nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('original_amount', sa.Numeric(15, 2), nullable=False),
        _fk('currency_id', 'currencies', 'SET NULL'),
        _fk('exchange_rate_id', 'exchange_rates', 'SET NULL'),
        sa.Column('exchange_rate', sa.Numeric(15, 6), nullable=False),
        sa.Column('equivalent_amount', sa.Numeric(24, 4), nullable=False),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('reference_number', 'company_id', name='uq_opening_balances_reference_company'),
        sa.UniqueConstraint(
            'account_id', 'financial_year_id', 'company_id',
            name='uq_opening_balances_account_year_company',
        ),
    )
    op.create_index('ix_opening_balances_company_id', 'opening_balances', ['company_id'])
    op.create_index('ix_opening_balances_company_year', 'opening_balances', ['company_id', 'financial_year_id'])

    op.create_table(
        'general_ledger',
        _id(),
        _company_id(),
        sa.Column('financial_year_code', sa.String(100), nullable=False),
        _fk('financial_year_id', 'financial_years', 'RESTRICT', nullable=False),
        sa.Column('system_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('transaction_date', sa.Date, nullable=False),
        sa.Column('reference_number', sa.String(100), nullable=False),
        sa.Column('transaction_type', sa.String(50), nullable=False),
        sa.Column('transaction_type_name', sa.String(100), nullable=False),
        sa.Column('created_by_code', sa.String(100), nullable=False),
        sa.Column('created_by_name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('account_type_code', sa.String(50), nullable=True),
        sa.Column('account_type_name', sa.String(100), nullable=True),
        _fk('account_type_id', 'account_types', 'SET NULL'),
        _fk('account_id', 'accounts', 'RESTRICT', nullable=False),
        sa.Column('account_name', sa.String(150), nullable=False),
        sa.Column('account_code', sa.String(50), nullable=False),
        sa.Column('account_nature', sa.String(10), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(15, 6), nullable=False),
        sa.Column('amount', sa.Numeric(24, 4), nullable=False),
        _fk('system_currency_id', 'currencies', 'RESTRICT', nullable=False),
        sa.Column('user_debit_amount', sa.Numeric(24, 4), nullable=True),
        sa.Column('user_credit_amount', sa.Numeric(24, 4), nullable=True),
        sa.Column('equivalent_debit_amount', sa.Numeric(24, 4), nullable=True),
        sa.Column('equivalent_credit_amount', sa.Numeric(24, 4), nullable=True),
        sa.Column('username', sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_general_ledger_company_id', 'general_ledger', ['company_id'])
    op.create_index(
        'ix_general_ledger_account_year', 'general_ledger', ['account_id', 'financial_year_id', 'transaction_date'],
    )
    op.create_index(
        'ix_general_ledger_reference', 'general_ledger', ['reference_number', 'transaction_type', 'company_id'],
    )
    op.create_index('ix_general_ledger_company_year', 'general_ledger', ['company_id', 'financial_year_id'])

    # =========================================================================
    # SALES
    # =========================================================================
    op.create_table(
        'sales_orders',
        _id(),
        _company_id(),
        *_sales_document_columns(),
        sa.Column('sales_order_ref_number', sa.String(50), nullable=False),
        sa.Column('sales_order_date', sa.Date, nullable=False),
        sa.Column('status', _enum('salesorderstatus'), nullable=False),
        sa.Column('is_converted', sa.Boolean, nullable=False),
        sa.Column('valid_until', sa.Date, nullable=True),
        sa.Column('accepted_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('fulfilled_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('fulfilled_at', sa.DateTime(timezone=True), nullable=True),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('sales_order_ref_number', 'company_id', name='uq_sales_orders_ref_company'),
    )
    op.create_index('ix_sales_orders_company_id', 'sales_orders', ['company_id'])
    op.create_index('ix_sales_orders_company_status', 'sales_orders', ['company_id', 'status'])

    op.create_table(
        'sales_order_items',
        _id(),
        _company_id(),
        _fk('sales_order_id', 'sales_orders', 'CASCADE', nullable=False),
        *_sales_line_columns(),
        *_timestamps(),
    )
    op.create_index('ix_sales_order_items_company_id', 'sales_order_items', ['company_id'])
    op.create_index('ix_sales_order_items_sales_order_id', 'sales_order_items', ['sales_order_id'])

    op.create_table(
        'sales_invoices',
        _id(),
        _company_id(),
        *_sales_document_columns(),
        sa.Column('invoice_ref_number', sa.String(50), nullable=False),
        sa.Column('invoice_date', sa.Date, nullable=False),
        sa.Column('due_date', sa.Date, nullable=True),
        _fk('sales_order_id', 'sales_orders', 'SET NULL'),
        _money('paid_amount'),
        _money('balance_amount'),
        sa.Column('payment_status', _enum('paymentstatus'), nullable=False),
        sa.Column('status', _enum('salesinvoicestatus'), nullable=False),
        _fk('account_receivable_id', 'accounts', 'SET NULL'),
        _fk('revenue_account_id', 'accounts', 'SET NULL'),
        _fk('tax_account_id', 'accounts', 'SET NULL'),
        _fk('wht_account_id', 'accounts', 'SET NULL'),
        _fk('discount_allowed_account_id', 'accounts', 'SET NULL'),
        sa.Column('approved_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text, nullable=True),
        *_audit(),
        *_timestamps(),
        sa.UniqueConstraint('invoice_ref_number', 'company_id', name='uq_sales_invoices_ref_company'),
    )
    op.create_index('ix_sales_invoices_company_id', 'sales_invoices', ['company_id'])
    op.create_index('ix_sales_invoices_company_status', 'sales_invoices', ['company_id', 'status'])

    op.create_table(
        'sales_invoice_items',
        _id(),
        _company_id(),
        _fk('sales_invoice_id', 'sales_invoices', 'CASCADE', nullable=False),
        *_sales_line_columns(),
        *_timestamps(),
    )
    op.create_index('ix_sales_invoice_items_company_id', 'sales_invoice_items', ['company_id'])
    op.create_index('ix_sales_invoice_items_sales_invoice_id', 'sales_invoice_items', ['sales_invoice_id'])


def downgrade() -> None:
    op.drop_table('sales_invoice_items')
    op.drop_table('sales_invoices')
    op.drop_table('sales_order_items')
    op.drop_table('sales_orders')
    op.drop_table('general_ledger')
    op.drop_table('opening_balances')
    op.drop_table('journal_entry_lines')
    op.drop_table('journal_entries')
    op.drop_table('product_models')
    op.drop_table('product_colors')
    op.drop_table('bank_details')
    op.drop_table('auto_codes')
    op.drop_table('accounts')
    op.drop_table('account_types')
    op.drop_table('financial_years')
    op.drop_table('exchange_rates')
    op.drop_table('currencies')
    op.drop_table('users')
    op.drop_table('companies')

    # Drop enums
    for name in reversed(list(ENUMS)):
        op.execute(f'DROP TYPE IF EXISTS {name}')
