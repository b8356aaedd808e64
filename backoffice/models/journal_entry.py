"""
POS Back Office - Journal Entry Models

A journal entry is a balanced, multi-line, optionally multi-currency
accounting transaction. Posting copies each line into the general ledger.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class LineType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntry(BaseModel, CompanyMixin, AuditMixin):
    """Journal entry header."""

    __tablename__ = "journal_entries"

    reference_number: Mapped[str] = mapped_column(String(100), nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    financial_year_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("financial_years.id", ondelete="RESTRICT"),
        nullable=False,
    )
    currency_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("currencies.id", ondelete="SET NULL"),
        nullable=True,
    )

    total_debit: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)

    is_posted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    posted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    posted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    lines: Mapped[List["JournalEntryLine"]] = relationship(
        "JournalEntryLine",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("reference_number", "company_id", name="uq_journal_entries_reference_company"),
        Index("ix_journal_entries_company_year", "company_id", "financial_year_id"),
    )


class JournalEntryLine(BaseModel, CompanyMixin):
    """One debit or credit line of a journal entry."""

    __tablename__ = "journal_entry_lines"

    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
    )
    account_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("account_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    # Equivalent amount in the system currency
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    original_amount: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False)
    equivalent_amount: Mapped[Decimal] = mapped_column(Numeric(24, 4), nullable=False)
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
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    journal_entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="lines")
