"""
POS Back Office - Sales Models

Sales orders (quotations that may be converted) and sales invoices (which post
to the general ledger on approval). Both share the same money columns and
line layout.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class SalesOrderStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    DELIVERED = "delivered"


class SalesInvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    PAID = "paid"
    PARTIAL_PAID = "partial_paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERPAID = "overpaid"


def _money(nullable: bool = False):
    return mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=nullable)


class SalesDocumentMixin:
    """Header columns shared by orders and invoices."""

    # Customers and stores are owned by other modules; referenced by id only
    store_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    @declared_attr
    def currency_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("currencies.id", ondelete="RESTRICT"), nullable=False,
        )

    @declared_attr
    def system_default_currency_id(cls) -> Mapped[Optional[uuid.UUID]]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("currencies.id", ondelete="SET NULL"), nullable=True,
        )

    @declared_attr
    def exchange_rate_id(cls) -> Mapped[Optional[uuid.UUID]]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("exchange_rates.id", ondelete="SET NULL"), nullable=True,
        )

    @declared_attr
    def financial_year_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("financial_years.id", ondelete="RESTRICT"), nullable=False,
        )

    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(15, 6), default=Decimal("1"), nullable=False)

    subtotal: Mapped[Decimal] = _money()
    tax_amount: Mapped[Decimal] = _money()
    discount_amount: Mapped[Decimal] = _money()
    total_amount: Mapped[Decimal] = _money()
    amount_after_discount: Mapped[Decimal] = _money()
    total_wht_amount: Mapped[Decimal] = _money()
    amount_after_wht: Mapped[Decimal] = _money()
    equivalent_amount: Mapped[Decimal] = _money()

    delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    shipping_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms_conditions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sent_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class SalesLineMixin:
    """Line columns shared by order and invoice items."""

    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    line_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Decimal] = _money()
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Decimal] = _money()
    wht_amount: Mapped[Decimal] = _money()
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(15, 6), default=Decimal("1"), nullable=False)
    equivalent_amount: Mapped[Decimal] = _money()
    amount_after_discount: Mapped[Decimal] = _money()
    amount_after_wht: Mapped[Decimal] = _money()
    line_total: Mapped[Decimal] = _money()
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @declared_attr
    def income_account_id(cls) -> Mapped[Optional[uuid.UUID]]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
        )


# ===========================================
# SALES ORDERS
# ===========================================

class SalesOrder(BaseModel, CompanyMixin, AuditMixin, SalesDocumentMixin):
    __tablename__ = "sales_orders"

    sales_order_ref_number: Mapped[str] = mapped_column(String(50), nullable=False)
    sales_order_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[SalesOrderStatus] = mapped_column(
        SQLEnum(SalesOrderStatus), default=SalesOrderStatus.DRAFT, nullable=False,
    )
    is_converted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    accepted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    fulfilled_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    fulfilled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[List["SalesOrderItem"]] = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("sales_order_ref_number", "company_id", name="uq_sales_orders_ref_company"),
        Index("ix_sales_orders_company_status", "company_id", "status"),
    )


class SalesOrderItem(BaseModel, CompanyMixin, SalesLineMixin):
    __tablename__ = "sales_order_items"

    sales_order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sales_order: Mapped["SalesOrder"] = relationship("SalesOrder", back_populates="items")


# ===========================================
# SALES INVOICES
# ===========================================

class SalesInvoice(BaseModel, CompanyMixin, AuditMixin, SalesDocumentMixin):
    __tablename__ = "sales_invoices"

    invoice_ref_number: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    sales_order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales_orders.id", ondelete="SET NULL"),
        nullable=True,
    )

    paid_amount: Mapped[Decimal] = _money()
    balance_amount: Mapped[Decimal] = _money()
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False,
    )
    status: Mapped[SalesInvoiceStatus] = mapped_column(
        SQLEnum(SalesInvoiceStatus), default=SalesInvoiceStatus.DRAFT, nullable=False,
    )

    # Ledger accounts used when the invoice is approved
    account_receivable_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
    )
    revenue_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
    )
    tax_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
    )
    wht_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
    )
    discount_allowed_account_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
    )

    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[List["SalesInvoiceItem"]] = relationship(
        "SalesInvoiceItem",
        back_populates="sales_invoice",
        cascade="all, delete-orphan",
        order_by="SalesInvoiceItem.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("invoice_ref_number", "company_id", name="uq_sales_invoices_ref_company"),
        Index("ix_sales_invoices_company_status", "company_id", "status"),
    )


class SalesInvoiceItem(BaseModel, CompanyMixin, SalesLineMixin):
    __tablename__ = "sales_invoice_items"

    sales_invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sales_invoice: Mapped["SalesInvoice"] = relationship("SalesInvoice", back_populates="items")
