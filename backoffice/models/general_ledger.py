"""
POS Back Office - General Ledger Model

Flattened table of every posted debit/credit per account and financial year.
Rows are denormalised snapshots of the posting document, the account and its
type so reports never need to join back to the source document.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base import BaseModel, CompanyMixin


class LedgerTransactionType(str, Enum):
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    SALES_INVOICE = "SALES_INVOICE"
    OPENING_BALANCE = "OPENING_BALANCE"


TRANSACTION_TYPE_NAMES = {
    LedgerTransactionType.JOURNAL_ENTRY: "Journal Entry",
    LedgerTransactionType.SALES_INVOICE: "Sales Invoice",
    LedgerTransactionType.OPENING_BALANCE: "Opening Balances",
}


class GeneralLedger(BaseModel, CompanyMixin):
    """One posted side of a document line."""

    __tablename__ = "general_ledger"

    financial_year_code: Mapped[str] = mapped_column(String(100), nullable=False)
    financial_year_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("financial_years.id", ondelete="RESTRICT"),
        nullable=False,
    )
    system_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference_number: Mapped[str] = mapped_column(String(100), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_type_name: Mapped[str] = mapped_column(String(100), nullable=False)

    created_by_code: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    account_type_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    account_type_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    account_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("account_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
    )
    account_name: Mapped[str] = mapped_column(String(150), nullable=False)
    account_code: Mapped[str] = mapped_column(String(50), nullable=False)
    # 'debit' or 'credit'
    account_nature: Mapped[str] = mapped_column(String(10), nullable=False)

    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(15, 6), default=Decimal("1"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False)
    system_currency_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("currencies.id", ondelete="RESTRICT"),
        nullable=False,
    )
    user_debit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(24, 4), nullable=True)
    user_credit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(24, 4), nullable=True)
    equivalent_debit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(24, 4), nullable=True)
    equivalent_credit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(24, 4), nullable=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        Index("ix_general_ledger_account_year", "account_id", "financial_year_id", "transaction_date"),
        Index("ix_general_ledger_reference", "reference_number", "transaction_type", "company_id"),
        Index("ix_general_ledger_company_year", "company_id", "financial_year_id"),
    )
