"""
POS Back Office - Financial Years Router

Financial years scope ledger postings and journal reference sequences.
Exactly one year per company is current; closed years accept no postings.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope, require_admin
from backoffice.models.user import User
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.financial_year import (
    FinancialYearClose,
    FinancialYearCreate,
    FinancialYearListResponse,
    FinancialYearResponse,
    FinancialYearStats,
    FinancialYearUpdate,
    NameAvailability,
    OverlapCheck,
)
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.utils.error_handling import AppException, InvalidDateRangeException, NotFoundException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/financial-years", tags=["Financial Years"])


@router.get("", response_model=FinancialYearListResponse)
async def list_financial_years(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(
        None, alias="status", pattern="^(current|closed|open|active|inactive)$",
    ),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await FinancialYearService(db).list_years(
        scope.read_company_id, page, limit, search, status_filter,
    )
    return FinancialYearListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/current", response_model=FinancialYearResponse)
async def get_current_financial_year(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    year = await FinancialYearService(db).get_current(scope.require_company())
    if year is None:
        raise NotFoundException("Financial year", message="No current financial year is set")
    return year


@router.get("/by-date", response_model=FinancialYearResponse)
async def get_financial_year_by_date(
    on_date: date = Query(..., alias="date"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """The financial year whose range contains the given date."""
    year = await FinancialYearService(db).get_by_date(on_date, scope.require_company())
    if year is None:
        raise NotFoundException("Financial year", message=f"No financial year contains {on_date}")
    return year


@router.get("/open", response_model=List[FinancialYearResponse])
async def list_open_financial_years(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialYearService(db).list_by_closed(scope.read_company_id, closed=False)


@router.get("/closed", response_model=List[FinancialYearResponse])
async def list_closed_financial_years(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialYearService(db).list_by_closed(scope.read_company_id, closed=True)


@router.get("/stats", response_model=FinancialYearStats)
async def financial_year_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialYearService(db).get_stats(scope.require_company())


@router.get("/check-name", response_model=NameAvailability)
async def check_financial_year_name(
    name: str = Query(..., min_length=1),
    exclude_id: Optional[UUID] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    available = await FinancialYearService(db).is_name_available(name, scope.require_company(), exclude_id)
    return NameAvailability(name=name, available=available)


@router.get("/check-overlap", response_model=OverlapCheck)
async def check_financial_year_overlap(
    start_date: date = Query(...),
    end_date: date = Query(...),
    exclude_id: Optional[UUID] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date >= end_date:
        raise InvalidDateRangeException(start_date, end_date)
    conflicting = await FinancialYearService(db).find_overlapping(
        start_date, end_date, scope.require_company(), exclude_id,
    )
    return OverlapCheck(overlaps=bool(conflicting), conflicting=conflicting)


@router.get("/{year_id}", response_model=FinancialYearResponse)
async def get_financial_year(
    year_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialYearService(db).get_year(year_id, scope.read_company_id)


@router.post("", response_model=FinancialYearResponse, status_code=status.HTTP_201_CREATED)
async def create_financial_year(
    data: FinancialYearCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a financial year.

    Names are unique per company and ranges may not overlap another active
    year. The first year of a company becomes current.
    """
    service = FinancialYearService(db)
    try:
        year = await service.create_year(data, scope.require_company(), scope.user.id)
        await db.commit()
        return year
    except AppException:
        await db.rollback()
        raise


@router.put("/{year_id}", response_model=FinancialYearResponse)
async def update_financial_year(
    year_id: UUID,
    data: FinancialYearUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = FinancialYearService(db)
    try:
        year = await service.update_year(year_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return year
    except AppException:
        await db.rollback()
        raise


@router.patch("/{year_id}/set-current", response_model=FinancialYearResponse)
async def set_current_financial_year(
    year_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = FinancialYearService(db)
    try:
        year = await service.set_current(year_id, scope.require_company(), scope.user.id)
        await db.commit()
        return year
    except AppException:
        await db.rollback()
        raise


@router.post("/{year_id}/close", response_model=FinancialYearResponse)
async def close_financial_year(
    year_id: UUID,
    data: FinancialYearClose,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Close a financial year.

    The year must be active, not current, not already closed, and its end
    date must have passed.
    """
    service = FinancialYearService(db)
    try:
        year = await service.close_year(year_id, scope.require_company(), scope.user.id, data.closing_notes)
        await db.commit()
        return year
    except AppException:
        await db.rollback()
        raise


@router.post("/{year_id}/reopen", response_model=FinancialYearResponse)
async def reopen_financial_year(
    year_id: UUID,
    admin: User = Depends(require_admin()),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Reopen a closed financial year (administrators only)."""
    service = FinancialYearService(db)
    try:
        year = await service.reopen_year(year_id, scope.require_company(), admin.id)
        await db.commit()
        return year
    except AppException:
        await db.rollback()
        raise


@router.delete("/{year_id}", response_model=MessageResponse)
async def delete_financial_year(
    year_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = FinancialYearService(db)
    try:
        await service.delete_year(year_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Financial year deleted")
