"""
POS Back Office - Sales Order and Sales Invoice Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.sales import PaymentStatus, SalesInvoiceStatus, SalesOrderStatus
from backoffice.schemas.common import PaginationMeta, TenantInput


# ===========================================
# LINES
# ===========================================

class SalesItemInput(TenantInput):
    """
    Line input. ``discount_amount`` wins over ``discount_percentage``;
    ``tax_amount`` is derived from ``tax_percentage`` when omitted.
    """
    product_id: Optional[UUID] = None
    description: Optional[str] = Field(None, max_length=255)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    tax_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    wht_amount: Decimal = Field(Decimal("0"), ge=0)
    income_account_id: Optional[UUID] = None
    notes: Optional[str] = None


class SalesItemResponse(BaseModel):
    id: UUID
    line_number: int
    product_id: Optional[UUID] = None
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    wht_amount: Decimal
    exchange_rate: Decimal
    equivalent_amount: Decimal
    amount_after_discount: Decimal
    amount_after_wht: Decimal
    line_total: Decimal
    income_account_id: Optional[UUID] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SalesDocumentBase(TenantInput):
    customer_id: Optional[UUID] = None
    store_id: Optional[UUID] = None
    currency_id: UUID
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    exchange_rate_id: Optional[UUID] = None
    delivery_date: Optional[date] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    terms_conditions: Optional[str] = None
    items: List[SalesItemInput] = Field(..., min_length=1)


class SalesDocumentUpdateBase(TenantInput):
    customer_id: Optional[UUID] = None
    store_id: Optional[UUID] = None
    currency_id: Optional[UUID] = None
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    exchange_rate_id: Optional[UUID] = None
    delivery_date: Optional[date] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    terms_conditions: Optional[str] = None
    items: Optional[List[SalesItemInput]] = Field(None, min_length=1)


class SalesDocumentResponse(BaseModel):
    id: UUID
    company_id: UUID
    store_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    currency_id: UUID
    system_default_currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Decimal
    financial_year_id: UUID
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_after_discount: Decimal
    total_wht_amount: Decimal
    amount_after_wht: Decimal
    equivalent_amount: Decimal
    delivery_date: Optional[date] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    terms_conditions: Optional[str] = None
    sent_by_id: Optional[UUID] = None
    sent_at: Optional[datetime] = None
    rejected_by_id: Optional[UUID] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    items: List[SalesItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ReasonRequest(TenantInput):
    reason: str = Field(..., min_length=1)


# ===========================================
# SALES ORDERS
# ===========================================

class SalesOrderCreate(SalesDocumentBase):
    sales_order_date: date
    valid_until: Optional[date] = None


class SalesOrderUpdate(SalesDocumentUpdateBase):
    sales_order_date: Optional[date] = None
    valid_until: Optional[date] = None


class SalesOrderFulfill(TenantInput):
    delivery_date: Optional[date] = None


class SalesOrderReopen(TenantInput):
    valid_until: date


class SalesOrderConvert(TenantInput):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    account_receivable_id: Optional[UUID] = None
    revenue_account_id: Optional[UUID] = None
    tax_account_id: Optional[UUID] = None
    wht_account_id: Optional[UUID] = None
    discount_allowed_account_id: Optional[UUID] = None


class SalesOrderResponse(SalesDocumentResponse):
    sales_order_ref_number: str
    sales_order_date: date
    status: SalesOrderStatus
    is_converted: bool
    valid_until: Optional[date] = None
    accepted_by_id: Optional[UUID] = None
    accepted_at: Optional[datetime] = None
    fulfilled_by_id: Optional[UUID] = None
    fulfilled_at: Optional[datetime] = None


class SalesOrderListResponse(BaseModel):
    items: List[SalesOrderResponse]
    pagination: PaginationMeta


# ===========================================
# SALES INVOICES
# ===========================================

class InvoiceAccountsMixin(BaseModel):
    account_receivable_id: Optional[UUID] = None
    revenue_account_id: Optional[UUID] = None
    tax_account_id: Optional[UUID] = None
    wht_account_id: Optional[UUID] = None
    discount_allowed_account_id: Optional[UUID] = None


class SalesInvoiceCreate(SalesDocumentBase, InvoiceAccountsMixin):
    invoice_date: date
    due_date: Optional[date] = None
    sales_order_id: Optional[UUID] = None


class SalesInvoiceUpdate(SalesDocumentUpdateBase, InvoiceAccountsMixin):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None


class SalesInvoiceResponse(SalesDocumentResponse, InvoiceAccountsMixin):
    invoice_ref_number: str
    invoice_date: date
    due_date: Optional[date] = None
    sales_order_id: Optional[UUID] = None
    paid_amount: Decimal
    balance_amount: Decimal
    payment_status: PaymentStatus
    status: SalesInvoiceStatus
    approved_by_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    cancelled_by_id: Optional[UUID] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class SalesInvoiceListResponse(BaseModel):
    items: List[SalesInvoiceResponse]
    pagination: PaginationMeta


class SalesStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_payment_status: Dict[str, int] = {}
    total_amount: Decimal
    total_balance: Optional[Decimal] = None
