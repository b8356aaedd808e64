"""
POS Back Office - Journal Entries Router

Balanced multi-line journal entries. Entries are editable until posted;
posting writes them to the general ledger and unposting removes them again.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.journal_entry import (
    JournalEntryCreate,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalEntryStats,
    JournalEntryUpdate,
)
from backoffice.services.journal_entry_service import JournalEntryService
from backoffice.utils.error_handling import AppException, InvalidDateRangeException

router = APIRouter(prefix="/api/v1/journal-entries", tags=["Journal Entries"])


@router.get("", response_model=JournalEntryListResponse)
async def list_journal_entries(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by description or reference"),
    sort_by: str = Query("entry_date"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    financial_year_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    is_posted: Optional[bool] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeException(start_date, end_date)
    items, total = await JournalEntryService(db).list_entries(
        scope.read_company_id, page, limit, search, sort_by, sort_order,
        financial_year_id, start_date, end_date, is_posted,
    )
    return JournalEntryListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/stats", response_model=JournalEntryStats)
async def journal_entry_stats(
    financial_year_id: Optional[UUID] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await JournalEntryService(db).get_stats(scope.read_company_id, financial_year_id)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_journal_entry(
    entry_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await JournalEntryService(db).get_entry(entry_id, scope.read_company_id)


@router.post("", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
    data: JournalEntryCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a journal entry.

    Debit and credit equivalents must balance, every account must belong to
    the company, and the financial year must be open. The reference number
    is generated.
    """
    service = JournalEntryService(db)
    try:
        entry = await service.create_entry(data, scope.require_company(), scope.user)
        await db.commit()
        return entry
    except AppException:
        await db.rollback()
        raise


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_journal_entry(
    entry_id: UUID,
    data: JournalEntryUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Update an unposted entry; supplied lines replace the existing ones."""
    service = JournalEntryService(db)
    try:
        entry = await service.update_entry(entry_id, data, scope.require_company(), scope.user)
        await db.commit()
        return entry
    except AppException:
        await db.rollback()
        raise


@router.post("/{entry_id}/post", response_model=JournalEntryResponse)
async def post_journal_entry(
    entry_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = JournalEntryService(db)
    try:
        entry = await service.post_entry(entry_id, scope.require_company(), scope.user)
        await db.commit()
        return entry
    except AppException:
        await db.rollback()
        raise


@router.post("/{entry_id}/unpost", response_model=JournalEntryResponse)
async def unpost_journal_entry(
    entry_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = JournalEntryService(db)
    try:
        entry = await service.unpost_entry(entry_id, scope.require_company(), scope.user)
        await db.commit()
        return entry
    except AppException:
        await db.rollback()
        raise


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_journal_entry(
    entry_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = JournalEntryService(db)
    try:
        await service.delete_entry(entry_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Journal entry deleted")
