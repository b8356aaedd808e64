"""
POS Back Office - Currencies Router

Per-company currencies. One currency per company is the default (system)
currency in which ledger equivalents are expressed.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.currency import (
    CurrencyCreate,
    CurrencyListResponse,
    CurrencyResponse,
    CurrencyUpdate,
)
from backoffice.services.currency_service import CurrencyService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/currencies", tags=["Currencies"])


@router.get("", response_model=CurrencyListResponse)
async def list_currencies(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by code, name or symbol"),
    is_active: Optional[bool] = Query(None),
    sort_by: str = Query("code"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """List currencies with pagination, search and sorting."""
    items, total = await CurrencyService(db).list_currencies(
        scope.read_company_id, page, limit, search, is_active, sort_by, sort_order,
    )
    return CurrencyListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/default", response_model=CurrencyResponse)
async def get_default_currency(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await CurrencyService(db).get_default_currency(scope.require_company())


@router.get("/{currency_id}", response_model=CurrencyResponse)
async def get_currency(
    currency_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await CurrencyService(db).get_currency(currency_id, scope.read_company_id)


@router.post("", response_model=CurrencyResponse, status_code=status.HTTP_201_CREATED)
async def create_currency(
    data: CurrencyCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a currency.

    The code is generated when omitted. The first currency of a company
    becomes its default.
    """
    service = CurrencyService(db)
    try:
        currency = await service.create_currency(data, scope.require_company(), scope.user.id)
        await db.commit()
        return currency
    except AppException:
        await db.rollback()
        raise


@router.put("/{currency_id}", response_model=CurrencyResponse)
async def update_currency(
    currency_id: UUID,
    data: CurrencyUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = CurrencyService(db)
    try:
        currency = await service.update_currency(currency_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return currency
    except AppException:
        await db.rollback()
        raise


@router.patch("/{currency_id}/set-default", response_model=CurrencyResponse)
async def set_default_currency(
    currency_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Make this the company's default currency; every other currency loses the flag."""
    service = CurrencyService(db)
    try:
        currency = await service.set_default(currency_id, scope.require_company(), scope.user.id)
        await db.commit()
        return currency
    except AppException:
        await db.rollback()
        raise


@router.patch("/{currency_id}/toggle-status", response_model=CurrencyResponse)
async def toggle_currency_status(
    currency_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = CurrencyService(db)
    try:
        currency = await service.toggle_status(currency_id, scope.require_company(), scope.user.id)
        await db.commit()
        return currency
    except AppException:
        await db.rollback()
        raise


@router.delete("/{currency_id}", response_model=MessageResponse)
async def delete_currency(
    currency_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = CurrencyService(db)
    try:
        await service.delete_currency(currency_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Currency deleted")
