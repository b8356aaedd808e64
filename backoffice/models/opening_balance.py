"""
POS Back Office - Opening Balance Model

The balance an account carries into a financial year. Each opening balance
is written to the general ledger as a single row under its own reference.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class OpeningBalance(BaseModel, CompanyMixin, AuditMixin):
    """Opening balance of one account in one financial year."""

    __tablename__ = "opening_balances"

    reference_number: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Copied from the account on create
    account_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("account_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    financial_year_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("financial_years.id", ondelete="RESTRICT"),
        nullable=False,
    )
    balance_date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    original_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    currency_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("currencies.id", ondelete="SET NULL"),
        nullable=True,
    )
    exchange_rate_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("exchange_rates.id", ondelete="SET NULL"),
        nullable=True,
    )
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(15, 6), default=Decimal("1"), nullable=False)
    equivalent_amount: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False)

    __table_args__ = (
        UniqueConstraint("reference_number", "company_id", name="uq_opening_balances_reference_company"),
        UniqueConstraint(
            "account_id", "financial_year_id", "company_id",
            name="uq_opening_balances_account_year_company",
        ),
        Index("ix_opening_balances_company_year", "company_id", "financial_year_id"),
    )
