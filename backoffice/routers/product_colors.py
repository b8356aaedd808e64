"""
POS Back Office - Product Colors Router
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
    ProductColorCreate,
    ProductColorListResponse,
    ProductColorResponse,
    ProductColorUpdate,
)
from backoffice.services.product_service import ProductColorService
from backoffice.utils.error_handling import AppException

router = APIRouter(prefix="/api/v1/product-colors", tags=["Product Colors"])


@router.get("", response_model=ProductColorListResponse)
async def list_product_colors(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ProductColorService(db).list_colors(
        scope.read_company_id, page, limit, search, is_active, sort_by, sort_order,
    )
    return ProductColorListResponse(items=items, pagination=PaginationMeta.build(page, limit, total))


@router.get("/active", response_model=List[ProductColorResponse])
async def list_active_product_colors(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductColorService(db).list_active(scope.read_company_id)


@router.get("/stats", response_model=ActiveCountStats)
async def product_color_stats(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductColorService(db).get_stats(scope.read_company_id)


@router.get("/{color_id}", response_model=ProductColorResponse)
async def get_product_color(
    color_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    return await ProductColorService(db).get_color(color_id, scope.read_company_id)


@router.post("", response_model=ProductColorResponse, status_code=status.HTTP_201_CREATED)
async def create_product_color(
    data: ProductColorCreate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductColorService(db)
    try:
        color = await service.create_color(data, scope.require_company(), scope.user.id)
        await db.commit()
        return color
    except AppException:
        await db.rollback()
        raise


@router.put("/{color_id}", response_model=ProductColorResponse)
async def update_product_color(
    color_id: UUID,
    data: ProductColorUpdate,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductColorService(db)
    try:
        color = await service.update_color(color_id, data, scope.require_company(), scope.user.id)
        await db.commit()
        return color
    except AppException:
        await db.rollback()
        raise


@router.delete("/{color_id}", response_model=MessageResponse)
async def delete_product_color(
    color_id: UUID,
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_db),
):
    service = ProductColorService(db)
    try:
        await service.delete_color(color_id, scope.require_company())
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return MessageResponse(message="Product color deleted")
