"""
POS Back Office - Opening Balances Router

Opening balances per account and financial year. Each balance is written to
the general ledger when created and rewritten whenever it changes.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.models.account import AccountCategory
from backoffice.models.journal_entry import LineType
from backoffice.schemas.account import AccountResponse
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.opening_balance import (
    OpeningBalanceCreate,
    OpeningBalanceExists,
    OpeningBalanceListResponse,
    OpeningBalanceResponse,
    OpeningBalanceStats,
    OpeningBalanceUpdate,
)
from backoffice.services.opening_balance_service import OpeningBalanceService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/opening-balances", tags=["Opening Balances"])


@router.get("", response_model=OpeningBalanceListResponse)
async def list_opening_balances(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by description, reference or account"),
    financial_year_id: Optional[UUID] = Query(None),
    account_type: Optional[AccountCategory] = Query(None),
    type: Optional[LineType] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await OpeningBalanceService(db).list_balances(
        scope.read_company_id, page, limit, search, financial_year_id,
        account_type.value if account_type else None,
        type.value if type else None,
    )
    return OpeningBalanceListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/stats", response_model=OpeningBalanceStats)
async def opening_balance_stats(
    financial_year_id: Optional[UUID] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await OpeningBalanceService(db).get_stats(scope.read_company_id, financial_year_id)


@router.get("/accounts/without-balances", response_model=List[AccountResponse])
async def accounts_without_balances(
    financial_year_id: UUID = Query(...),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Active leaf accounts that still need an opening balance for the year."""
    return await OpeningBalanceService(db).accounts_without_balances(financial_year_id, scope.read_company_id)


@router.get("/check-exists", response_model=OpeningBalanceExists)
async def check_opening_balance_exists(
    account_id: UUID = Query(...),
    financial_year_id: UUID = Query(...),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    balance = await OpeningBalanceService(db).find_for_account(
        account_id, financial_year_id, scope.read_company_id,
    )
    if balance is None:
        return OpeningBalanceExists(exists=False)
    return OpeningBalanceExists(exists=True, opening_balance=OpeningBalanceResponse.model_validate(balance))


@router.get("/{balance_id}", response_model=OpeningBalanceResponse)
async def get_opening_balance(
    balance_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await OpeningBalanceService(db).get_balance(balance_id, scope.read_company_id)


@router.post("", response_model=OpeningBalanceResponse, status_code=status.HTTP_201_CREATED)
async def create_opening_balance(
    data: OpeningBalanceCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an opening balance and write its ledger row.

    One balance per account and financial year; the year must be open and
    contain the balance date, and a default currency must be configured.
    """
    service = OpeningBalanceService(db)
    try:
        balance = await service.create_balance(data, scope.require_company(), scope.user)
        await db.commit()
        return balance
    except AppException:
        await db.rollback()
        raise


@router.put("/{balance_id}", response_model=OpeningBalanceResponse)
async def update_opening_balance(
    balance_id: UUID,
    data: OpeningBalanceUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Update a balance of the current financial year and rewrite its ledger row."""
    service = OpeningBalanceService(db)
    try:
        balance = await service.update_balance(balance_id, data, scope.require_company(), scope.user)
        await db.commit()
        return balance
    except AppException:
        await db.rollback()
        raise


@router.delete("/{balance_id}", response_model=MessageResponse)
async def delete_opening_balance(
    balance_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = OpeningBalanceService(db)
    try:
        await service.delete_balance(balance_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Opening balance deleted")
