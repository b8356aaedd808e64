"""
POS Back Office - Sales Orders Router

Sales orders (quotations): draft -> sent -> accepted -> delivered, with
rejection, expiry and conversion into a sales invoice.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.models.sales import SalesOrderStatus
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.sales import (
    ReasonRequest,
    SalesInvoiceResponse,
    SalesOrderConvert,
    SalesOrderCreate,
    SalesOrderFulfill,
    SalesOrderListResponse,
    SalesOrderReopen,
    SalesOrderResponse,
    SalesOrderUpdate,
    SalesStats,
)
from backoffice.services.sales_order_service import SalesOrderService
from backoffice.utils.error_handling import AppException, InvalidDateRangeException

router = APIRouter(prefix="/api/v1/sales-orders", tags=["Sales Orders"])


@router.get("", response_model=SalesOrderListResponse)
async def list_sales_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by reference or notes"),
    status_filter: Optional[SalesOrderStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeException(start_date, end_date)
    items, total = await SalesOrderService(db).list_orders(
        scope.read_company_id, page, limit, search, status_filter, customer_id, start_date, end_date,
    )
    return SalesOrderListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/stats", response_model=SalesStats)
async def sales_order_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await SalesOrderService(db).get_stats(scope.read_company_id)


@router.post("/expire-overdue", response_model=MessageResponse)
async def expire_overdue_sales_orders(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Mark draft and sent orders whose validity date has passed as expired."""
    expired = await SalesOrderService(db).expire_overdue(scope.require_company())
    await db.commit()
    return MessageResponse(message=f"{expired} sales order(s) expired")


@router.get("/{order_id}", response_model=SalesOrderResponse)
async def get_sales_order(
    order_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await SalesOrderService(db).get_order(order_id, scope.read_company_id)


@router.post("", response_model=SalesOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_sales_order(
    data: SalesOrderCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a draft sales order.

    The order date must fall in the current, open financial year. Amounts
    are computed from the items and the exchange rate.
    """
    service = SalesOrderService(db)
    try:
        order = await service.create_order(data, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.put("/{order_id}", response_model=SalesOrderResponse)
async def update_sales_order(
    order_id: UUID,
    data: SalesOrderUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        order = await service.update_order(order_id, data, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_sales_order(
    order_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        await service.delete_order(order_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Sales order deleted")


@router.post("/{order_id}/send", response_model=SalesOrderResponse)
async def send_sales_order(
    order_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        order = await service.send_order(order_id, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.post("/{order_id}/accept", response_model=SalesOrderResponse)
async def accept_sales_order(
    order_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        order = await service.accept_order(order_id, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.post("/{order_id}/reject", response_model=SalesOrderResponse)
async def reject_sales_order(
    order_id: UUID,
    data: ReasonRequest,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        order = await service.reject_order(order_id, data.reason, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.post("/{order_id}/fulfill", response_model=SalesOrderResponse)
async def fulfill_sales_order(
    order_id: UUID,
    data: SalesOrderFulfill,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Mark an accepted order delivered; the delivery date defaults to today."""
    service = SalesOrderService(db)
    try:
        order = await service.fulfill_order(order_id, scope.require_company(), scope.user, data.delivery_date)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.post("/{order_id}/reopen", response_model=SalesOrderResponse)
async def reopen_sales_order(
    order_id: UUID,
    data: SalesOrderReopen,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = SalesOrderService(db)
    try:
        order = await service.reopen_order(order_id, data.valid_until, scope.require_company(), scope.user)
        await db.commit()
        return order
    except AppException:
        await db.rollback()
        raise


@router.post(
    "/{order_id}/convert",
    response_model=SalesInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def convert_sales_order(
    order_id: UUID,
    data: SalesOrderConvert,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Convert a sent, accepted or delivered order into a draft sales invoice (once)."""
    service = SalesOrderService(db)
    try:
        invoice = await service.convert_to_invoice(order_id, data, scope.require_company(), scope.user)
        await db.commit()
        return invoice
    except AppException:
        await db.rollback()
        raise
