"""
POS Back Office - Trial Balance Router
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.trial_balance import HierarchicalTrialBalanceResponse, TrialBalanceResponse
from backoffice.services.trial_balance_service import TrialBalanceService

router = APIRouter(prefix="/api/v1/trial-balance", tags=["Trial Balance"])


@router.get("", response_model=TrialBalanceResponse)
async def get_trial_balance(
    financial_year_id: UUID = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    include_zero_balances: bool = Query(True),
    include_inactive: bool = Query(False),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Trial balance of a financial year, grouped by account type.

    Accounts without postings are listed only when zero balances are
    included; inactive accounts only on request.
    """
    return await TrialBalanceService(db).generate(
        financial_year_id, scope.require_company(), scope.user,
        start_date, end_date, include_zero_balances, include_inactive,
    )


@router.get("/hierarchical", response_model=HierarchicalTrialBalanceResponse)
async def get_hierarchical_trial_balance(
    financial_year_id: UUID = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    include_zero_balances: bool = Query(True),
    include_inactive: bool = Query(False),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Trial balance as an account tree; parents include their children's totals."""
    return await TrialBalanceService(db).generate_hierarchical(
        financial_year_id, scope.require_company(), scope.user,
        start_date, end_date, include_zero_balances, include_inactive,
    )
