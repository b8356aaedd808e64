"""
POS Back Office - Chart of Accounts Router

Account types and accounts. Account codes are generated per company and
never change; an account's nature comes from its parent, else its type.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.models.account import AccountStatus
from backoffice.schemas.account import (
    AccountCreate,
    AccountListResponse,
    AccountResponse,
    AccountStats,
    AccountTypeCreate,
    AccountTypeResponse,
    AccountTypeTree,
    AccountTypeUpdate,
    AccountUpdate,
)
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.services.account_service import AccountService
from backoffice.utils.error_handling import AppException

types_router = APIRouter(prefix="/api/v1/account-types", tags=["Account Types"])
router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


# ============================================================================
# ACCOUNT TYPES
# ============================================================================

@types_router.get("", response_model=List[AccountTypeResponse])
async def list_account_types(
    is_active: Optional[bool] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).list_account_types(scope.read_company_id, is_active)


@types_router.get("/{type_id}", response_model=AccountTypeResponse)
async def get_account_type(
    type_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).get_account_type(type_id, scope.read_company_id)


@types_router.post("", response_model=AccountTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_account_type(
    data: AccountTypeCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AccountService(db)
    try:
        account_type = await service.create_account_type(data, scope.require_company(), scope.user.id)
        await db.commit()
        return account_type
    except AppException:
        await db.rollback()
        raise


@types_router.put("/{type_id}", response_model=AccountTypeResponse)
async def update_account_type(
    type_id: UUID,
    data: AccountTypeUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AccountService(db)
    try:
        account_type = await service.update_account_type(type_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return account_type
    except AppException:
        await db.rollback()
        raise


@types_router.delete("/{type_id}", response_model=MessageResponse)
async def delete_account_type(
    type_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AccountService(db)
    try:
        await service.delete_account_type(type_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Account type deleted")


# ============================================================================
# ACCOUNTS
# ============================================================================

@router.get("", response_model=AccountListResponse)
async def list_accounts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by code, name or description"),
    account_type_id: Optional[UUID] = Query(None),
    status_filter: Optional[AccountStatus] = Query(None, alias="status"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await AccountService(db).list_accounts(
        scope.read_company_id, page, limit, search, account_type_id, status_filter,
    )
    return AccountListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/all", response_model=List[AccountResponse])
async def list_all_active_accounts(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Flat list of active accounts, for dropdowns."""
    return await AccountService(db).list_active_accounts(scope.read_company_id)


@router.get("/leaf", response_model=List[AccountResponse])
async def list_leaf_accounts(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Active accounts without active children; the ones that take postings."""
    return await AccountService(db).list_leaf_accounts(scope.read_company_id)


@router.get("/tree", response_model=List[AccountTypeTree])
async def get_account_tree(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).get_tree(scope.read_company_id)


@router.get("/stats", response_model=AccountStats)
async def account_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).get_stats(scope.read_company_id)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).get_account(account_id, scope.read_company_id)


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    data: AccountCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Create an account; its code is generated from the company's code settings."""
    service = AccountService(db)
    try:
        account = await service.create_account(data, scope.require_company(), scope.user.id)
        await db.commit()
        return account
    except AppException:
        await db.rollback()
        raise


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: UUID,
    data: AccountUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AccountService(db)
    try:
        account = await service.update_account(account_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return account
    except AppException:
        await db.rollback()
        raise


@router.delete("/{account_id}", response_model=MessageResponse)
async def delete_account(
    account_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account without children, ledger rows or journal lines."""
    service = AccountService(db)
    try:
        await service.delete_account(account_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Account deleted")
