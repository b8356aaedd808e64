"""
POS Back Office - Database Models
"""

from backoffice.models.base import BaseModel, TimestampMixin, AuditMixin, CompanyMixin
from backoffice.models.company import Company
from backoffice.models.user import User, UserRole
from backoffice.models.currency import Currency, ExchangeRate
from backoffice.models.financial_year import FinancialYear
from backoffice.models.account import (
    Account, AccountType, AccountCategory, AccountNature, AccountStatus,
)
from backoffice.models.general_ledger import GeneralLedger, LedgerTransactionType
from backoffice.models.journal_entry import JournalEntry, JournalEntryLine, LineType
from backoffice.models.auto_code import AutoCode, AutoCodeStatus, CodeType
from backoffice.models.product import ProductColor, ProductModel
from backoffice.models.bank_detail import BankDetail
from backoffice.models.opening_balance import OpeningBalance
from backoffice.models.sales import (
    SalesOrder, SalesOrderItem, SalesOrderStatus,
    SalesInvoice, SalesInvoiceItem, SalesInvoiceStatus, PaymentStatus,
)

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    "CompanyMixin",
    # Tenancy
    "Company",
    "User",
    "UserRole",
    # Currency
    "Currency",
    "ExchangeRate",
    # Accounting
    "FinancialYear",
    "Account",
    "AccountType",
    "AccountCategory",
    "AccountNature",
    "AccountStatus",
    "GeneralLedger",
    "LedgerTransactionType",
    "JournalEntry",
    "JournalEntryLine",
    "LineType",
    "OpeningBalance",
    # Master data
    "AutoCode",
    "AutoCodeStatus",
    "CodeType",
    "ProductColor",
    "ProductModel",
    "BankDetail",
    # Sales
    "SalesOrder",
    "SalesOrderItem",
    "SalesOrderStatus",
    "SalesInvoice",
    "SalesInvoiceItem",
    "SalesInvoiceStatus",
    "PaymentStatus",
]
