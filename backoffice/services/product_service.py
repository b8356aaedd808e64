"""
POS Back Office - Product Master Data Services

Product colors (``COL-0001``) and product models (``{COMPANY}-PMD-0001`` or a
caller supplied code, unique per company).
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.product import ProductColor, ProductModel
from backoffice.schemas.product import (
    ProductColorCreate,
    ProductColorUpdate,
    ProductModelCreate,
    ProductModelUpdate,
)
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.utils.error_handling import DuplicateEntryException, NotFoundException

logger = logging.getLogger(__name__)


async def _paginate(db: AsyncSession, query, order_by, page: int, limit: int) -> Tuple[list, int]:
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(order_by).offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


async def _active_counts(db: AsyncSession, model, company_id: Optional[uuid.UUID]) -> dict:
    query = select(model.is_active, func.count(model.id)).group_by(model.is_active)
    if company_id is not None:
        query = query.where(model.company_id == company_id)
    counts = {bool(active): count for active, count in (await db.execute(query)).all()}
    active = counts.get(True, 0)
    inactive = counts.get(False, 0)
    return {"total": active + inactive, "active": active, "inactive": inactive}


class ProductColorService:
    """Service for product colors."""

    SORTABLE_FIELDS = {
        "code": ProductColor.code,
        "name": ProductColor.name,
        "hex_code": ProductColor.hex_code,
        "created_at": ProductColor.created_at,
    }

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_colors(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "name",
        sort_order: str = "asc",
    ) -> Tuple[List[ProductColor], int]:
        query = select(ProductColor)
        if company_id is not None:
            query = query.where(ProductColor.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                ProductColor.code.ilike(pattern),
                ProductColor.name.ilike(pattern),
                ProductColor.hex_code.ilike(pattern),
            ))
        if is_active is not None:
            query = query.where(ProductColor.is_active == is_active)
        column = self.SORTABLE_FIELDS.get(sort_by, ProductColor.name)
        order_by = column.desc() if sort_order.lower() == "desc" else column.asc()
        return await _paginate(self.db, query, order_by, page, limit)

    async def list_active(self, company_id: Optional[uuid.UUID]) -> List[ProductColor]:
        query = select(ProductColor).where(ProductColor.is_active.is_(True)).order_by(ProductColor.name)
        if company_id is not None:
            query = query.where(ProductColor.company_id == company_id)
        return list((await self.db.execute(query)).scalars().all())

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        return await _active_counts(self.db, ProductColor, company_id)

    async def get_color(self, color_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> ProductColor:
        query = select(ProductColor).where(ProductColor.id == color_id)
        if company_id is not None:
            query = query.where(ProductColor.company_id == company_id)
        color = (await self.db.execute(query)).scalar_one_or_none()
        if color is None:
            raise NotFoundException("Product color", color_id)
        return color

    async def create_color(
        self, data: ProductColorCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> ProductColor:
        color = ProductColor(
            company_id=company_id,
            code=await AutoCodeService(self.db).next_code("product_colors", company_id),
            name=data.name,
            hex_code=data.hex_code.upper(),
            description=data.description,
            is_active=data.is_active,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(color)
        await self.db.flush()
        return color

    async def update_color(
        self,
        color_id: uuid.UUID,
        data: ProductColorUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ProductColor:
        color = await self.get_color(color_id, company_id)
        for field, value in data.changed_fields("description").items():
            if field == "hex_code" and value:
                value = value.upper()
            setattr(color, field, value)
        color.updated_by_id = user_id
        await self.db.flush()
        return color

    async def delete_color(self, color_id: uuid.UUID, company_id: uuid.UUID) -> None:
        color = await self.get_color(color_id, company_id)
        await self.db.delete(color)
        await self.db.flush()


class ProductModelService:
    """Service for product models."""

    SORTABLE_FIELDS = {
        "code": ProductModel.code,
        "name": ProductModel.name,
        "brand": ProductModel.brand,
        "created_at": ProductModel.created_at,
    }

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_models(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        category_id: Optional[uuid.UUID] = None,
        sort_by: str = "name",
        sort_order: str = "asc",
    ) -> Tuple[List[ProductModel], int]:
        query = select(ProductModel)
        if company_id is not None:
            query = query.where(ProductModel.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                ProductModel.code.ilike(pattern),
                ProductModel.name.ilike(pattern),
                ProductModel.brand.ilike(pattern),
                ProductModel.model_number.ilike(pattern),
            ))
        if is_active is not None:
            query = query.where(ProductModel.is_active == is_active)
        if category_id:
            query = query.where(ProductModel.category_id == category_id)
        column = self.SORTABLE_FIELDS.get(sort_by, ProductModel.name)
        order_by = column.desc() if sort_order.lower() == "desc" else column.asc()
        return await _paginate(self.db, query, order_by, page, limit)

    async def list_active(self, company_id: Optional[uuid.UUID]) -> List[ProductModel]:
        query = select(ProductModel).where(ProductModel.is_active.is_(True)).order_by(ProductModel.name)
        if company_id is not None:
            query = query.where(ProductModel.company_id == company_id)
        return list((await self.db.execute(query)).scalars().all())

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        return await _active_counts(self.db, ProductModel, company_id)

    async def get_model(self, model_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> ProductModel:
        query = select(ProductModel).where(ProductModel.id == model_id)
        if company_id is not None:
            query = query.where(ProductModel.company_id == company_id)
        product_model = (await self.db.execute(query)).scalar_one_or_none()
        if product_model is None:
            raise NotFoundException("Product model", model_id)
        return product_model

    async def is_code_available(
        self, code: str, company_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = select(ProductModel.id).where(
            ProductModel.company_id == company_id,
            func.upper(ProductModel.code) == code.strip().upper(),
        )
        if exclude_id is not None:
            query = query.where(ProductModel.id != exclude_id)
        return (await self.db.execute(query)).first() is None

    async def create_model(
        self, data: ProductModelCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> ProductModel:
        values = data.model_dump(exclude={"code"})
        if data.code and data.code.strip():
            code = data.code.strip().upper()
            if not await self.is_code_available(code, company_id):
                raise DuplicateEntryException("Product model", "code", code)
        else:
            code = await AutoCodeService(self.db).next_code("product_models", company_id)

        product_model = ProductModel(
            **values,
            code=code,
            company_id=company_id,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(product_model)
        await self.db.flush()
        return product_model

    async def update_model(
        self,
        model_id: uuid.UUID,
        data: ProductModelUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ProductModel:
        product_model = await self.get_model(model_id, company_id)
        changes = data.changed_fields("description", "category_id", "brand", "model_number", "specifications")
        if changes.get("code"):
            code = changes["code"].strip().upper()
            if not await self.is_code_available(code, company_id, exclude_id=product_model.id):
                raise DuplicateEntryException("Product model", "code", code)
            changes["code"] = code
        else:
            changes.pop("code", None)
        for field, value in changes.items():
            setattr(product_model, field, value)
        product_model.updated_by_id = user_id
        await self.db.flush()
        return product_model

    async def deactivate_model(self, model_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> ProductModel:
        product_model = await self.get_model(model_id, company_id)
        product_model.is_active = False
        product_model.updated_by_id = user_id
        await self.db.flush()
        return product_model

    async def delete_model(self, model_id: uuid.UUID, company_id: uuid.UUID) -> None:
        product_model = await self.get_model(model_id, company_id)
        await self.db.delete(product_model)
        await self.db.flush()
