"""
POS Back Office - Exchange Rate Service

Dated rates between two currencies of the same company. A rate converts one
unit of ``from_currency`` into ``to_currency``; the latest rate effective on
or before a date applies.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from backoffice.config import settings
from backoffice.models.currency import Currency, ExchangeRate
from backoffice.schemas.currency import ExchangeRateCreate, ExchangeRateUpdate
from backoffice.services.currency_service import CurrencyService
from backoffice.utils.error_handling import (
    DuplicateEntryException,
    NotFoundException,
    ValidationException,
)
from backoffice.utils.ledger import ONE, to_decimal

logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.000001")


class ExchangeRateService:
    """Service for exchange rate management and conversion."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_rates(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        from_currency_id: Optional[uuid.UUID] = None,
        to_currency_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[ExchangeRate], int]:
        query = select(ExchangeRate)
        if company_id is not None:
            query = query.where(ExchangeRate.company_id == company_id)
        if search:
            from_alias = aliased(Currency)
            to_alias = aliased(Currency)
            pattern = f"%{search}%"
            query = (
                query.join(from_alias, ExchangeRate.from_currency_id == from_alias.id)
                .join(to_alias, ExchangeRate.to_currency_id == to_alias.id)
                .where(or_(
                    from_alias.code.ilike(pattern),
                    from_alias.name.ilike(pattern),
                    to_alias.code.ilike(pattern),
                    to_alias.name.ilike(pattern),
                ))
            )
        if from_currency_id:
            query = query.where(ExchangeRate.from_currency_id == from_currency_id)
        if to_currency_id:
            query = query.where(ExchangeRate.to_currency_id == to_currency_id)
        if is_active is not None:
            query = query.where(ExchangeRate.is_active == is_active)
        if start_date:
            query = query.where(ExchangeRate.effective_date >= start_date)
        if end_date:
            query = query.where(ExchangeRate.effective_date <= end_date)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()

        query = query.order_by(ExchangeRate.effective_date.desc(), ExchangeRate.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_rate(
        self, rate_id: uuid.UUID, company_id: Optional[uuid.UUID], refresh: bool = False,
    ) -> ExchangeRate:
        query = select(ExchangeRate).where(ExchangeRate.id == rate_id)
        if company_id is not None:
            query = query.where(ExchangeRate.company_id == company_id)
        if refresh:
            # Reload currency relationships after the FKs changed
            query = query.execution_options(populate_existing=True)
        rate = (await self.db.execute(query)).scalar_one_or_none()
        if rate is None:
            raise NotFoundException("Exchange rate", rate_id)
        return rate

    async def list_active(self, company_id: Optional[uuid.UUID]) -> List[ExchangeRate]:
        query = select(ExchangeRate).where(
            ExchangeRate.is_active.is_(True),
            ExchangeRate.effective_date <= date.today(),
        )
        if company_id is not None:
            query = query.where(ExchangeRate.company_id == company_id)
        result = await self.db.execute(query.order_by(ExchangeRate.effective_date.desc()))
        return list(result.scalars().all())

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        def scoped(query):
            if company_id is not None:
                return query.where(ExchangeRate.company_id == company_id)
            return query

        total = (await self.db.execute(scoped(select(func.count(ExchangeRate.id))))).scalar_one()
        active = (await self.db.execute(
            scoped(select(func.count(ExchangeRate.id)).where(ExchangeRate.is_active.is_(True)))
        )).scalar_one()
        # Past rates that have been switched off
        expired = (await self.db.execute(
            scoped(select(func.count(ExchangeRate.id)).where(
                ExchangeRate.effective_date < date.today(),
                ExchangeRate.is_active.is_(False),
            ))
        )).scalar_one()
        last_update = (await self.db.execute(
            scoped(select(func.max(ExchangeRate.updated_at)))
        )).scalar_one()
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "expired": expired,
            "last_update": last_update,
        }

    async def get_history(
        self,
        from_currency_id: uuid.UUID,
        to_currency_id: uuid.UUID,
        company_id: Optional[uuid.UUID],
        limit: Optional[int] = None,
    ) -> List[ExchangeRate]:
        query = select(ExchangeRate).where(
            ExchangeRate.from_currency_id == from_currency_id,
            ExchangeRate.to_currency_id == to_currency_id,
        )
        if company_id is not None:
            query = query.where(ExchangeRate.company_id == company_id)
        query = query.order_by(ExchangeRate.effective_date.desc()).limit(
            limit or settings.exchange_rate_history_limit
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_effective_rate(
        self,
        from_currency_id: uuid.UUID,
        to_currency_id: uuid.UUID,
        company_id: uuid.UUID,
        on_date: Optional[date] = None,
    ) -> Optional[ExchangeRate]:
        """Latest active rate for the pair effective on or before ``on_date``."""
        result = await self.db.execute(
            select(ExchangeRate)
            .where(and_(
                ExchangeRate.company_id == company_id,
                ExchangeRate.from_currency_id == from_currency_id,
                ExchangeRate.to_currency_id == to_currency_id,
                ExchangeRate.is_active.is_(True),
                ExchangeRate.effective_date <= (on_date or date.today()),
            ))
            .order_by(ExchangeRate.effective_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def latest_rate_to_default(self, currency_id: uuid.UUID, company_id: uuid.UUID) -> dict:
        """
        Rate converting ``currency_id`` into the company's default currency.

        The default currency converts to itself at 1 with no rate record.
        """
        currency_service = CurrencyService(self.db)
        await currency_service.get_currency(currency_id, company_id)
        default = await currency_service.get_default_currency(company_id)

        if default.id == currency_id:
            return {
                "currency_id": currency_id,
                "default_currency_id": default.id,
                "rate": ONE,
                "exchange_rate_id": None,
                "effective_date": None,
            }

        rate = await self.find_effective_rate(currency_id, default.id, company_id)
        if rate is None:
            raise NotFoundException(
                "Exchange rate",
                message="No exchange rate found from this currency to the default currency",
            )
        return {
            "currency_id": currency_id,
            "default_currency_id": default.id,
            "rate": rate.rate,
            "exchange_rate_id": rate.id,
            "effective_date": rate.effective_date,
        }

    async def convert(
        self,
        amount: Decimal,
        from_currency_id: uuid.UUID,
        to_currency_id: uuid.UUID,
        company_id: uuid.UUID,
        on_date: Optional[date] = None,
    ) -> dict:
        """Convert using the direct rate, else the inverse of the opposite pair."""
        amount = to_decimal(amount)
        result = {
            "amount": amount,
            "from_currency_id": from_currency_id,
            "to_currency_id": to_currency_id,
            "inverse": False,
            "exchange_rate_id": None,
        }
        if from_currency_id == to_currency_id:
            return {**result, "rate": ONE, "converted_amount": amount}

        direct = await self.find_effective_rate(from_currency_id, to_currency_id, company_id, on_date)
        if direct is not None:
            rate = direct.rate
            result["exchange_rate_id"] = direct.id
        else:
            reverse = await self.find_effective_rate(to_currency_id, from_currency_id, company_id, on_date)
            if reverse is None or reverse.rate <= 0:
                raise NotFoundException(
                    "Exchange rate",
                    message="No exchange rate available for this currency pair",
                )
            rate = (ONE / reverse.rate).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
            result["exchange_rate_id"] = reverse.id
            result["inverse"] = True

        converted = (amount * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return {**result, "rate": rate, "converted_amount": converted}

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def _validate(
        self,
        from_currency_id: uuid.UUID,
        to_currency_id: uuid.UUID,
        rate: Decimal,
        effective_date: date,
        company_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        if from_currency_id == to_currency_id:
            raise ValidationException("From and to currencies must be different", field="to_currency_id")

        rate = to_decimal(rate)
        if rate < settings.min_exchange_rate or rate > settings.max_exchange_rate:
            raise ValidationException(
                f"Exchange rate must be between {settings.min_exchange_rate} and {settings.max_exchange_rate}",
                field="rate",
            )

        owned = (await self.db.execute(
            select(func.count(Currency.id)).where(
                Currency.id.in_([from_currency_id, to_currency_id]),
                Currency.company_id == company_id,
            )
        )).scalar_one()
        if owned != 2:
            raise ValidationException(
                "Both currencies must exist and belong to your company",
                field="from_currency_id",
            )

        query = select(ExchangeRate.id).where(
            ExchangeRate.company_id == company_id,
            ExchangeRate.from_currency_id == from_currency_id,
            ExchangeRate.to_currency_id == to_currency_id,
            ExchangeRate.effective_date == effective_date,
        )
        if exclude_id is not None:
            query = query.where(ExchangeRate.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise DuplicateEntryException("Exchange rate", "effective_date", str(effective_date))

    async def create_rate(
        self, data: ExchangeRateCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> ExchangeRate:
        await self._validate(
            data.from_currency_id, data.to_currency_id, data.rate, data.effective_date, company_id,
        )
        rate = ExchangeRate(
            company_id=company_id,
            from_currency_id=data.from_currency_id,
            to_currency_id=data.to_currency_id,
            rate=data.rate,
            effective_date=data.effective_date,
            is_active=data.is_active,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(rate)
        await self.db.flush()
        return await self.get_rate(rate.id, company_id, refresh=True)

    async def update_rate(
        self,
        rate_id: uuid.UUID,
        data: ExchangeRateUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ExchangeRate:
        rate = await self.get_rate(rate_id, company_id)
        changes = data.changed_fields()
        from_id = changes.get("from_currency_id", rate.from_currency_id)
        to_id = changes.get("to_currency_id", rate.to_currency_id)
        value = changes.get("rate", rate.rate)
        effective = changes.get("effective_date", rate.effective_date)
        await self._validate(from_id, to_id, value, effective, company_id, exclude_id=rate.id)

        for field, new_value in changes.items():
            setattr(rate, field, new_value)
        rate.updated_by_id = user_id
        await self.db.flush()
        return await self.get_rate(rate.id, company_id, refresh=True)

    async def delete_rate(self, rate_id: uuid.UUID, company_id: uuid.UUID) -> None:
        rate = await self.get_rate(rate_id, company_id)
        await self.db.delete(rate)
        await self.db.flush()

    async def toggle_status(self, rate_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> ExchangeRate:
        rate = await self.get_rate(rate_id, company_id)
        rate.is_active = not rate.is_active
        rate.updated_by_id = user_id
        await self.db.flush()
        return rate
