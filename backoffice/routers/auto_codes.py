"""
POS Back Office - Auto Codes Router

Per-company code generation settings (prefix, format, next number) for the
modules that number their records automatically.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.auto_code import (
    AutoCodeCreate,
    AutoCodeResponse,
    AutoCodeUpdate,
    AvailableModulesResponse,
    NextCodePreview,
)
from backoffice.schemas.common import MessageResponse
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/auto-codes", tags=["Auto Codes"])


@router.get("", response_model=List[AutoCodeResponse])
async def list_auto_codes(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """List code generation settings."""
    return await AutoCodeService(db).list_auto_codes(scope.read_company_id)


@router.get("/modules/available", response_model=AvailableModulesResponse)
async def available_modules(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Modules that support automatic codes and whether each is configured."""
    modules = await AutoCodeService(db).available_modules(scope.require_company())
    return AvailableModulesResponse(modules=modules)


@router.get("/next/{module_name}", response_model=NextCodePreview)
async def preview_next_code(
    module_name: str = Path(..., description="Module name, e.g. accounts"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Preview the next code for a module.

    The preview does not consume a number.
    """
    code, configured = await AutoCodeService(db).generate_next_code(
        module_name, scope.require_company(), consume=False,
    )
    return NextCodePreview(module_name=module_name, code=code, configured=configured)


@router.get("/{auto_code_id}", response_model=AutoCodeResponse)
async def get_auto_code(
    auto_code_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await AutoCodeService(db).get_auto_code(auto_code_id, scope.read_company_id)


@router.post("", response_model=AutoCodeResponse, status_code=status.HTTP_201_CREATED)
async def create_auto_code(
    data: AutoCodeCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Configure code generation for a module (one configuration per module)."""
    service = AutoCodeService(db)
    try:
        auto_code = await service.create_auto_code(data, scope.require_company(), scope.user.id)
        await db.commit()
        return auto_code
    except AppException:
        await db.rollback()
        raise


@router.put("/{auto_code_id}", response_model=AutoCodeResponse)
async def update_auto_code(
    auto_code_id: UUID,
    data: AutoCodeUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AutoCodeService(db)
    try:
        auto_code = await service.update_auto_code(auto_code_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return auto_code
    except AppException:
        await db.rollback()
        raise


@router.delete("/{auto_code_id}", response_model=MessageResponse)
async def delete_auto_code(
    auto_code_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = AutoCodeService(db)
    try:
        await service.delete_auto_code(auto_code_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Auto code configuration deleted")
