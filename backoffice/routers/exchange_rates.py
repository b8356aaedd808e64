"""
POS Back Office - Exchange Rates Router

Dated conversion rates between a company's currencies.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.currency import (
    ConversionRequest,
    ConversionResponse,
    ExchangeRateCreate,
    ExchangeRateListResponse,
    ExchangeRateResponse,
    ExchangeRateStats,
    ExchangeRateUpdate,
    LatestRateResponse,
)
from backoffice.services.exchange_rate_service import ExchangeRateService
from backoffice.utils.error_handling import AppException, InvalidDateRangeException

router = APIRouter(prefix="/api/v1/exchange-rates", tags=["Exchange Rates"])


@router.get("", response_model=ExchangeRateListResponse)
async def list_exchange_rates(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by currency code or name"),
    from_currency_id: Optional[UUID] = Query(None),
    to_currency_id: Optional[UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeException(start_date, end_date)
    items, total = await ExchangeRateService(db).list_rates(
        scope.read_company_id, page, limit, search,
        from_currency_id, to_currency_id, is_active, start_date, end_date,
    )
    return ExchangeRateListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/all-active", response_model=List[ExchangeRateResponse])
async def list_active_exchange_rates(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Active rates already in effect (effective date today or earlier)."""
    return await ExchangeRateService(db).list_active(scope.read_company_id)


@router.get("/stats", response_model=ExchangeRateStats)
async def exchange_rate_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ExchangeRateService(db).get_stats(scope.read_company_id)


@router.get("/history", response_model=List[ExchangeRateResponse])
async def exchange_rate_history(
    from_currency_id: UUID = Query(...),
    to_currency_id: UUID = Query(...),
    limit: int = Query(settings.exchange_rate_history_limit, ge=1, le=500),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Rates of one currency pair, newest first."""
    return await ExchangeRateService(db).get_history(
        from_currency_id, to_currency_id, scope.read_company_id, limit,
    )


@router.get("/latest/{currency_id}", response_model=LatestRateResponse)
async def latest_rate_to_default(
    currency_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Latest rate converting a currency into the company's default currency.

    The default currency itself converts at 1 without a rate record.
    """
    return await ExchangeRateService(db).latest_rate_to_default(currency_id, scope.require_company())


@router.post("/convert", response_model=ConversionResponse)
async def convert_amount(
    data: ConversionRequest,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Convert an amount using the direct rate, else the inverse of the opposite pair."""
    return await ExchangeRateService(db).convert(
        data.amount, data.from_currency_id, data.to_currency_id, scope.require_company(), data.on_date,
    )


@router.get("/{rate_id}", response_model=ExchangeRateResponse)
async def get_exchange_rate(
    rate_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ExchangeRateService(db).get_rate(rate_id, scope.read_company_id)


@router.post("", response_model=ExchangeRateResponse, status_code=status.HTTP_201_CREATED)
async def create_exchange_rate(
    data: ExchangeRateCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ExchangeRateService(db)
    try:
        rate = await service.create_rate(data, scope.require_company(), scope.user.id)
        await db.commit()
        return rate
    except AppException:
        await db.rollback()
        raise


@router.put("/{rate_id}", response_model=ExchangeRateResponse)
async def update_exchange_rate(
    rate_id: UUID,
    data: ExchangeRateUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ExchangeRateService(db)
    try:
        rate = await service.update_rate(rate_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return rate
    except AppException:
        await db.rollback()
        raise


@router.patch("/{rate_id}/toggle-status", response_model=ExchangeRateResponse)
async def toggle_exchange_rate_status(
    rate_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ExchangeRateService(db)
    try:
        rate = await service.toggle_status(rate_id, scope.require_company(), scope.user.id)
        await db.commit()
        return rate
    except AppException:
        await db.rollback()
        raise


@router.delete("/{rate_id}", response_model=MessageResponse)
async def delete_exchange_rate(
    rate_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ExchangeRateService(db)
    try:
        await service.delete_rate(rate_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Exchange rate deleted")
