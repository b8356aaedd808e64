"""
POS Back Office - General Ledger Router

Read-only access to posted ledger rows and account balances. Rows are only
written by posting journal entries and approving sales invoices.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.common import PaginationMeta
from backoffice.schemas.general_ledger import AccountBalanceResponse, GeneralLedgerListResponse
from backoffice.services.account_service import AccountService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.services.general_ledger_service import GeneralLedgerService
from backoffice.utils.error_handling import InvalidDateRangeException, NotFoundException

router = APIRouter(prefix="/api/v1/general-ledger", tags=["General Ledger"])


@router.get("", response_model=GeneralLedgerListResponse)
async def list_ledger_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    account_id: Optional[UUID] = Query(None),
    financial_year_id: Optional[UUID] = Query(None),
    transaction_type: Optional[str] = Query(None, description="JOURNAL_ENTRY or SALES_INVOICE"),
    reference_number: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeException(start_date, end_date)
    items, total = await GeneralLedgerService(db).list_entries(
        scope.read_company_id, page, limit, account_id, financial_year_id,
        transaction_type, reference_number, start_date, end_date,
    )
    return GeneralLedgerListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceResponse)
async def get_account_balance(
    account_id: UUID,
    financial_year_id: Optional[UUID] = Query(None, description="Defaults to the current financial year"),
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Debit and credit totals of an account and its balance (debit - credit)."""
    company_id = scope.require_company()
    await AccountService(db).get_account(account_id, company_id)

    years = FinancialYearService(db)
    if financial_year_id:
        year = await years.get_year(financial_year_id, company_id)
    else:
        year = await years.get_current(company_id)
        if year is None:
            raise NotFoundException("Financial year", message="No current financial year is set")

    as_of = as_of or date.today()
    debit, credit = await GeneralLedgerService(db).account_totals(account_id, year.id, company_id, as_of)
    return AccountBalanceResponse(
        account_id=account_id,
        financial_year_id=year.id,
        as_of=as_of,
        total_debit=debit,
        total_credit=credit,
        balance=debit - credit,
    )
