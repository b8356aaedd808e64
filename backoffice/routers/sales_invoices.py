"""
POS Back Office - Sales Invoices Router

Sales invoices. Approval posts a balanced SALES_INVOICE batch to the general
ledger; rejecting or cancelling an approved invoice removes it.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.models.sales import PaymentStatus, SalesInvoiceStatus
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.sales import (
    ReasonRequest,
    SalesInvoiceCreate,
    SalesInvoiceListResponse,
    SalesInvoiceResponse,
    SalesInvoiceUpdate,
    SalesStats,
)
from backoffice.services.sales_invoice_service import SalesInvoiceService
from backoffice.utils.error_handling import AppException, InvalidDateRangeException

router = APIRouter(prefix="/api/v1/sales-invoices", tags=["Sales Invoices"])


@router.get("", response_model=SalesInvoiceListResponse)
async def list_sales_invoices(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by reference or notes"),
    status_filter: Optional[SalesInvoiceStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeException(start_date, end_date)
    items, total = await SalesInvoiceService(db).list_invoices(
        scope.read_company_id, page, limit, search, status_filter, payment_status,
        customer_id, start_date, end_date,
    )
    return SalesInvoiceListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/stats", response_model=SalesStats)
async def sales_invoice_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await SalesInvoiceService(db).get_stats(scope.read_company_id)


@router.get("/{invoice_id}", response_model=SalesInvoiceResponse)
async def get_sales_invoice(
    invoice_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await SalesInvoiceService(db).get_invoice(invoice_id, scope.read_company_id)


@router.post("", response_model=SalesInvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_sales_invoice(
    data: SalesInvoiceCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        invoice = await service.create_invoice(data, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise


@router.put("/{invoice_id}", response_model=SalesInvoiceResponse)
async def update_sales_invoice(
    invoice_id: UUID,
    data: SalesInvoiceUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        invoice = await service.update_invoice(invoice_id, data, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_sales_invoice(
    invoice_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        await service.delete_invoice(invoice_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Sales invoice deleted")


@router.post("/{invoice_id}/send", response_model=SalesInvoiceResponse)
async def send_sales_invoice(
    invoice_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        invoice = await service.send_invoice(invoice_id, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise


@router.post("/{invoice_id}/approve", response_model=SalesInvoiceResponse)
async def approve_sales_invoice(
    invoice_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Approve an invoice and post it to the general ledger.

    Receivable and revenue accounts are required, as are the WHT, discount
    and tax accounts when the invoice carries those amounts.
    """
    service = SalesInvoiceService(db)
    try:
        invoice = await service.approve_invoice(invoice_id, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise


@router.post("/{invoice_id}/reject", response_model=SalesInvoiceResponse)
async def reject_sales_invoice(
    invoice_id: UUID,
    data: ReasonRequest,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        invoice = await service.reject_invoice(invoice_id, data.reason, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise


@router.post("/{invoice_id}/cancel", response_model=SalesInvoiceResponse)
async def cancel_sales_invoice(
    invoice_id: UUID,
    data: ReasonRequest,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesInvoiceService(db)
    try:
        invoice = await service.cancel_invoice(invoice_id, data.reason, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise
