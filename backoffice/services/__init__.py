"""
POS Back Office - Services Package

Business logic services.
"""

from backoffice.services.auth_service import AuthService
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.services.currency_service import CurrencyService
from backoffice.services.exchange_rate_service import ExchangeRateService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.services.account_service import AccountService

# Ledger
from backoffice.services.general_ledger_service import GeneralLedgerService, LedgerPosting
from backoffice.services.journal_entry_service import JournalEntryService
from backoffice.services.trial_balance_service import TrialBalanceService

# Sales
from backoffice.services.sales_invoice_service import SalesInvoiceService
from backoffice.services.sales_order_service import SalesOrderService

# Master data
from backoffice.services.product_service import ProductColorService, ProductModelService
from backoffice.services.bank_detail_service import BankDetailService

__all__ = [
    "AuthService",
    "AutoCodeService",
    "CurrencyService",
    "ExchangeRateService",
    "FinancialYearService",
    "AccountService",
    "GeneralLedgerService",
    "LedgerPosting",
    "JournalEntryService",
    "TrialBalanceService",
    "SalesInvoiceService",
    "SalesOrderService",
    "ProductColorService",
    "ProductModelService",
    "BankDetailService",
]
