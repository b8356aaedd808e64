"""
POS Back Office - Currency and Exchange Rate Models

Each company keeps its own currency list; exactly one currency per company is
flagged as default and is the system currency for ledger equivalents.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Index, Numeric, String, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class Currency(BaseModel, CompanyMixin, AuditMixin):
    """Currency owned by a company."""

    __tablename__ = "currencies"

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    flag: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("code", "company_id", name="uq_currencies_code_company"),
        Index("ix_currencies_company_default", "company_id", "is_default"),
    )


class ExchangeRate(BaseModel, CompanyMixin, AuditMixin):
    """Rate converting one unit of from_currency into to_currency, effective from a date."""

    __tablename__ = "exchange_rates"

    from_currency_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("currencies.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_currency_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("currencies.id", ondelete="CASCADE"),
        nullable=False,
    )
    rate: Mapped[Decimal] = mapped_column(Numeric(15, 6), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    from_currency: Mapped["Currency"] = relationship(
        "Currency", foreign_keys=[from_currency_id], lazy="selectin",
    )
    to_currency: Mapped["Currency"] = relationship(
        "Currency", foreign_keys=[to_currency_id], lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint(
            "from_currency_id", "to_currency_id", "effective_date", "company_id",
            name="uq_exchange_rates_pair_date_company",
        ),
        CheckConstraint("rate > 0", name="rate_positive"),
        Index("ix_exchange_rates_pair", "from_currency_id", "to_currency_id", "effective_date"),
    )
