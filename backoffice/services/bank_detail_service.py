"""
POS Back Office - Bank Detail Service
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.bank_detail import BankDetail
from backoffice.schemas.bank_detail import BankDetailCreate, BankDetailUpdate
from backoffice.services.account_service import AccountService
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.utils.error_handling import NotFoundException

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "code": BankDetail.code,
    "bank_name": BankDetail.bank_name,
    "branch": BankDetail.branch,
    "account_number": BankDetail.account_number,
    "created_at": BankDetail.created_at,
}


class BankDetailService:
    """Service for company bank accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        query = select(
            func.count(BankDetail.id),
            func.coalesce(func.sum(case((BankDetail.is_active.is_(True), 1), else_=0)), 0),
            func.count(BankDetail.account_id),
        )
        if company_id is not None:
            query = query.where(BankDetail.company_id == company_id)
        total, active, linked = (await self.db.execute(query)).one()
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "linked_to_account": linked,
        }

    async def list_bank_details(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "bank_name",
        sort_order: str = "asc",
    ) -> Tuple[List[BankDetail], int]:
        query = select(BankDetail)
        if company_id is not None:
            query = query.where(BankDetail.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                BankDetail.code.ilike(pattern),
                BankDetail.bank_name.ilike(pattern),
                BankDetail.branch.ilike(pattern),
                BankDetail.account_number.ilike(pattern),
            ))
        if is_active is not None:
            query = query.where(BankDetail.is_active == is_active)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        column = SORTABLE_FIELDS.get(sort_by, BankDetail.bank_name)
        query = query.order_by(column.desc() if sort_order.lower() == "desc" else column.asc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def get_bank_detail(self, bank_detail_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> BankDetail:
        query = select(BankDetail).where(BankDetail.id == bank_detail_id)
        if company_id is not None:
            query = query.where(BankDetail.company_id == company_id)
        bank_detail = (await self.db.execute(query)).scalar_one_or_none()
        if bank_detail is None:
            raise NotFoundException("Bank detail", bank_detail_id)
        return bank_detail

    async def create_bank_detail(
        self, data: BankDetailCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> BankDetail:
        if data.account_id:
            # Linked ledger account must belong to the same company
            await AccountService(self.db).get_account(data.account_id, company_id)

        bank_detail = BankDetail(
            **data.model_dump(),
            code=await AutoCodeService(self.db).next_code("bank_details", company_id),
            company_id=company_id,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(bank_detail)
        await self.db.flush()
        logger.info(f"Bank detail {bank_detail.code} created for company {company_id}")
        return bank_detail

    async def update_bank_detail(
        self,
        bank_detail_id: uuid.UUID,
        data: BankDetailUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> BankDetail:
        bank_detail = await self.get_bank_detail(bank_detail_id, company_id)
        changes = data.changed_fields("account_id")
        if changes.get("account_id"):
            await AccountService(self.db).get_account(changes["account_id"], company_id)
        for field, value in changes.items():
            setattr(bank_detail, field, value)
        bank_detail.updated_by_id = user_id
        await self.db.flush()
        return bank_detail

    async def toggle_status(self, bank_detail_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> BankDetail:
        bank_detail = await self.get_bank_detail(bank_detail_id, company_id)
        bank_detail.is_active = not bank_detail.is_active
        bank_detail.updated_by_id = user_id
        await self.db.flush()
        return bank_detail

    async def delete_bank_detail(self, bank_detail_id: uuid.UUID, company_id: uuid.UUID) -> None:
        bank_detail = await self.get_bank_detail(bank_detail_id, company_id)
        await self.db.delete(bank_detail)
        await self.db.flush()
