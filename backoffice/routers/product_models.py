"""
POS Back Office - Product Models Router
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.common import MessageResponse, PaginationMeta
from backoffice.schemas.product import (
    ActiveCountStats,
    CodeAvailability,
    ProductModelCreate,
    ProductModelListResponse,
    ProductModelResponse,
    ProductModelUpdate,
)
from backoffice.services.product_service import ProductModelService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/product-models", tags=["Product Models"])


@router.get("", response_model=ProductModelListResponse)
async def list_product_models(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Search by code, name, brand or model number"),
    is_active: Optional[bool] = Query(None),
    category_id: Optional[UUID] = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ProductModelService(db).list_models(
        scope.read_company_id, page, limit, search, is_active, category_id, sort_by, sort_order,
    )
    return ProductModelListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/active", response_model=List[ProductModelResponse])
async def list_active_product_models(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductModelService(db).list_active(scope.read_company_id)


@router.get("/check-code", response_model=CodeAvailability)
async def check_product_model_code(
    code: str = Query(..., min_length=1),
    exclude_id: Optional[UUID] = Query(None),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    available = await ProductModelService(db).is_code_available(code, scope.require_company(), exclude_id)
    return CodeAvailability(code=code, available=available)


@router.get("/stats", response_model=ActiveCountStats)
async def product_model_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductModelService(db).get_stats(scope.read_company_id)


@router.get("/{model_id}", response_model=ProductModelResponse)
async def get_product_model(
    model_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductModelService(db).get_model(model_id, scope.read_company_id)


@router.post("", response_model=ProductModelResponse, status_code=status.HTTP_201_CREATED)
async def create_product_model(
    data: ProductModelCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    """Create a product model; the code is generated when omitted."""
    service = ProductModelService(db)
    try:
        product_model = await service.create_model(data, scope.require_company(), scope.user.id)
        await db.commit()
        return product_model
    except AppException:
        await db.rollback()
        raise


@router.put("/{model_id}", response_model=ProductModelResponse)
async def update_product_model(
    model_id: UUID,
    data: ProductModelUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductModelService(db)
    try:
        product_model = await service.update_model(model_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return product_model
    except AppException:
        await db.rollback()
        raise


@router.patch("/{model_id}/deactivate", response_model=ProductModelResponse)
async def deactivate_product_model(
    model_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductModelService(db)
    try:
        product_model = await service.deactivate_model(model_id, scope.require_company(), scope.user.id)
        await db.commit()
        return product_model
    except AppException:
        await db.rollback()
        raise


@router.delete("/{model_id}", response_model=MessageResponse)
async def delete_product_model(
    model_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductModelService(db)
    try:
        await service.delete_model(model_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Product model deleted")
