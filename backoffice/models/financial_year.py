"""
POS Back Office - Financial Year Model

A date-bounded accounting period. Ledger postings and journal-entry reference
sequences are scoped to a financial year.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class FinancialYear(BaseModel, CompanyMixin, AuditMixin):
    """Financial year of a company."""

    __tablename__ = "financial_years"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    closing_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "company_id", name="uq_financial_years_name_company"),
        CheckConstraint("start_date < end_date", name="start_before_end"),
    )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def can_be_closed(self, today: Optional[date] = None) -> bool:
        today = today or date.today()
        return (
            not self.is_current
            and not self.is_closed
            and self.is_active
            and self.end_date < today
        )
