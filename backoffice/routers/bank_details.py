"""
POS Back Office - Bank Details Router

Company bank accounts, optionally linked to a ledger account.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.bank_detail import (
    BankDetailCreate,
    BankDetailListResponse,
    BankDetailResponse,
    BankDetailStats,
    BankDetailUpdate,
)
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.services.bank_detail_service import BankDetailService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/bank-details", tags=["Bank Details"])


@router.get("/stats", response_model=BankDetailStats)
async def bank_detail_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await BankDetailService(db).get_stats(scope.read_company_id)


@router.get("", response_model=BankDetailListResponse)
async def list_bank_details(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by code, bank, branch or account number"),
    is_active: Optional[bool] = Query(None),
    sort_by: str = Query("bank_name"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await BankDetailService(db).list_bank_details(
        scope.read_company_id, page, limit, search, is_active, sort_by, sort_order,
    )
    return BankDetailListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/{bank_detail_id}", response_model=BankDetailResponse)
async def get_bank_detail(
    bank_detail_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await BankDetailService(db).get_bank_detail(bank_detail_id, scope.read_company_id)


@router.post("", response_model=BankDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_bank_detail(
    data: BankDetailCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = BankDetailService(db)
    try:
        bank_detail = await service.create_bank_detail(data, scope.require_company(), scope.user.id)
        await db.commit()
        return bank_detail
    except AppException:
        await db.rollback()
        raise


@router.put("/{bank_detail_id}", response_model=BankDetailResponse)
async def update_bank_detail(
    bank_detail_id: UUID,
    data: BankDetailUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = BankDetailService(db)
    try:
        bank_detail = await service.update_bank_detail(bank_detail_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return bank_detail
    except AppException:
        await db.rollback()
        raise


@router.patch("/{bank_detail_id}/toggle-status", response_model=BankDetailResponse)
async def toggle_bank_detail_status(
    bank_detail_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = BankDetailService(db)
    try:
        bank_detail = await service.toggle_status(bank_detail_id, scope.require_company(), scope.user.id)
        await db.commit()
        return bank_detail
    except AppException:
        await db.rollback()
        raise


@router.delete("/{bank_detail_id}", response_model=MessageResponse)
async def delete_bank_detail(
    bank_detail_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = BankDetailService(db)
    try:
        await service.delete_bank_detail(bank_detail_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Bank detail deleted")
