"""
POS Back Office - Routers Package

FastAPI route handlers, all mounted under /api/v1.

Routers:
- auth: Login and current user
- companies: Current company
- auto_codes: Code generation settings
- currencies: Currencies and the default currency
- exchange_rates: Exchange rates, history and conversion
- financial_years: Financial years, closing and reopening
- accounts: Account types and chart of accounts
- general_ledger: Ledger rows and account balances
- journal_entries: Journal entries, posting and unposting
- opening_balances: Opening balances per account and financial year
- trial_balance: Trial balance reports
- sales_orders: Sales orders and conversion to invoices
- sales_invoices: Sales invoices and approval
- product_colors: Product colors
- product_models: Product models
- bank_details: Company bank accounts
"""

from backoffice.routers import (
    auth,
    companies,
    auto_codes,
    currencies,
    exchange_rates,
    financial_years,
    accounts,
    general_ledger,
    journal_entries,
    opening_balances,
    trial_balance,
    sales_orders,
    sales_invoices,
    product_colors,
    product_models,
    bank_details,
)

__all__ = [
    "auth",
    "companies",
    "auto_codes",
    "currencies",
    "exchange_rates",
    "financial_years",
    "accounts",
    "general_ledger",
    "journal_entries",
    "opening_balances",
    "trial_balance",
    "sales_orders",
    "sales_invoices",
    "product_colors",
    "product_models",
    "bank_details",
]
