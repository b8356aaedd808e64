"""
POS Back Office - Currency Service

Per-company currency list. Exactly one currency of a company is the default;
it is the system currency that ledger equivalents are expressed in.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.currency import Currency
from backoffice.schemas.currency import CurrencyCreate, CurrencyUpdate
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.utils.error_handling import (
    BusinessRuleException,
    DuplicateEntryException,
    NotFoundException,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "code": Currency.code,
    "name": Currency.name,
    "symbol": Currency.symbol,
    "created_at": Currency.created_at,
    "is_default": Currency.is_default,
}


class CurrencyService:
    """Service for currency management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_currencies(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort_by: str = "code",
        sort_order: str = "asc",
    ) -> Tuple[List[Currency], int]:
        query = select(Currency)
        if company_id is not None:
            query = query.where(Currency.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Currency.code.ilike(pattern),
                Currency.name.ilike(pattern),
                Currency.symbol.ilike(pattern),
            ))
        if is_active is not None:
            query = query.where(Currency.is_active == is_active)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()

        column = SORTABLE_FIELDS.get(sort_by, Currency.code)
        query = query.order_by(column.desc() if sort_order.lower() == "desc" else column.asc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_currency(self, currency_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> Currency:
        query = select(Currency).where(Currency.id == currency_id)
        if company_id is not None:
            query = query.where(Currency.company_id == company_id)
        currency = (await self.db.execute(query)).scalar_one_or_none()
        if currency is None:
            raise NotFoundException("Currency", currency_id)
        return currency

    async def find_default_currency(self, company_id: uuid.UUID) -> Optional[Currency]:
        result = await self.db.execute(
            select(Currency).where(
                Currency.company_id == company_id,
                Currency.is_default.is_(True),
            ).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_default_currency(self, company_id: uuid.UUID) -> Currency:
        currency = await self.find_default_currency(company_id)
        if currency is None:
            raise NotFoundException("Currency", message="No default currency configured for this company")
        return currency

    async def _ensure_code_free(
        self, code: str, company_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Currency.id).where(Currency.company_id == company_id, Currency.code == code)
        if exclude_id is not None:
            query = query.where(Currency.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise DuplicateEntryException("Currency", "code", code)

    async def _clear_default(self, company_id: uuid.UUID, keep_id: Optional[uuid.UUID] = None) -> None:
        stmt = update(Currency).where(Currency.company_id == company_id, Currency.is_default.is_(True))
        if keep_id is not None:
            stmt = stmt.where(Currency.id != keep_id)
        await self.db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))

    async def create_currency(
        self, data: CurrencyCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> Currency:
        code = data.code.strip().upper() if data.code else None
        if code:
            await self._ensure_code_free(code, company_id)
        else:
            code = await AutoCodeService(self.db).next_code("currencies", company_id)

        has_currency = (await self.db.execute(
            select(Currency.id).where(Currency.company_id == company_id).limit(1)
        )).first() is not None
        # First currency of a company becomes its default
        is_default = data.is_default or not has_currency
        if is_default and has_currency:
            await self._clear_default(company_id)

        currency = Currency(
            company_id=company_id,
            code=code,
            name=data.name,
            symbol=data.symbol,
            country=data.country,
            flag=data.flag,
            is_default=is_default,
            is_active=True if is_default else data.is_active,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(currency)
        await self.db.flush()
        return currency

    async def update_currency(
        self,
        currency_id: uuid.UUID,
        data: CurrencyUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Currency:
        currency = await self.get_currency(currency_id, company_id)
        changes = data.changed_fields("country", "flag")
        if changes.get("is_active") is False and currency.is_default:
            raise BusinessRuleException("The default currency cannot be deactivated", rule="DEFAULT_CURRENCY_ACTIVE")
        for field, value in changes.items():
            setattr(currency, field, value)
        currency.updated_by_id = user_id
        await self.db.flush()
        return currency

    async def delete_currency(self, currency_id: uuid.UUID, company_id: uuid.UUID) -> None:
        currency = await self.get_currency(currency_id, company_id)
        if currency.is_default:
            raise BusinessRuleException(
                "Cannot delete the default currency. Set another currency as default first.",
                rule="DEFAULT_CURRENCY_REQUIRED",
            )
        await self.db.delete(currency)
        await self.db.flush()

    async def set_default(self, currency_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> Currency:
        currency = await self.get_currency(currency_id, company_id)
        await self._clear_default(company_id, keep_id=currency.id)
        currency.is_default = True
        currency.is_active = True
        currency.updated_by_id = user_id
        await self.db.flush()
        logger.info(f"Currency {currency.code} set as default for company {company_id}")
        return currency

    async def toggle_status(self, currency_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> Currency:
        currency = await self.get_currency(currency_id, company_id)
        if currency.is_default and currency.is_active:
            raise BusinessRuleException("The default currency cannot be deactivated", rule="DEFAULT_CURRENCY_ACTIVE")
        currency.is_active = not currency.is_active
        currency.updated_by_id = user_id
        await self.db.flush()
        return currency
