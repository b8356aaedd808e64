"""
POS Back Office - Financial Year Service

Financial years bound ledger postings and reference sequences. A company has
at most one current year, active years never overlap, and closed years
accept no postings until an administrator reopens them.
"""

import logging
import uuid
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.base import utcnow
from backoffice.models.financial_year import FinancialYear
from backoffice.models.general_ledger import GeneralLedger
from backoffice.schemas.financial_year import FinancialYearCreate, FinancialYearUpdate
from backoffice.utils.error_handling import (
    BusinessRuleException,
    ClosedFinancialYearException,
    DuplicateEntryException,
    InvalidDateRangeException,
    NotFoundException,
)

logger = logging.getLogger(__name__)


class FinancialYearService:
    """Service for financial year management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_years(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[FinancialYear], int]:
        query = select(FinancialYear)
        if company_id is not None:
            query = query.where(FinancialYear.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                FinancialYear.name.ilike(pattern),
                FinancialYear.description.ilike(pattern),
            ))
        if status == "current":
            query = query.where(FinancialYear.is_current.is_(True))
        elif status == "closed":
            query = query.where(FinancialYear.is_closed.is_(True))
        elif status == "open":
            query = query.where(FinancialYear.is_closed.is_(False))
        elif status == "active":
            query = query.where(FinancialYear.is_active.is_(True))
        elif status == "inactive":
            query = query.where(FinancialYear.is_active.is_(False))

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(FinancialYear.start_date.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_year(self, year_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> FinancialYear:
        query = select(FinancialYear).where(FinancialYear.id == year_id)
        if company_id is not None:
            query = query.where(FinancialYear.company_id == company_id)
        year = (await self.db.execute(query)).scalar_one_or_none()
        if year is None:
            raise NotFoundException("Financial year", year_id)
        return year

    async def get_current(self, company_id: uuid.UUID) -> Optional[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear).where(
                FinancialYear.company_id == company_id,
                FinancialYear.is_current.is_(True),
            ).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_date(self, on_date: date, company_id: uuid.UUID) -> Optional[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear).where(
                FinancialYear.company_id == company_id,
                FinancialYear.is_active.is_(True),
                FinancialYear.start_date <= on_date,
                FinancialYear.end_date >= on_date,
            ).order_by(FinancialYear.start_date.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_closed(self, company_id: Optional[uuid.UUID], closed: bool) -> List[FinancialYear]:
        query = select(FinancialYear).where(FinancialYear.is_closed.is_(closed))
        if not closed:
            query = query.where(FinancialYear.is_active.is_(True))
        if company_id is not None:
            query = query.where(FinancialYear.company_id == company_id)
        result = await self.db.execute(query.order_by(FinancialYear.start_date.desc()))
        return list(result.scalars().all())

    async def get_stats(self, company_id: uuid.UUID) -> dict:
        years = (await self.db.execute(
            select(FinancialYear).where(FinancialYear.company_id == company_id)
        )).scalars().all()
        return {
            "total": len(years),
            "active": sum(1 for y in years if y.is_active),
            "closed": sum(1 for y in years if y.is_closed),
            "open": sum(1 for y in years if not y.is_closed),
            "current": next((y for y in years if y.is_current), None),
        }

    async def is_name_available(
        self, name: str, company_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = select(FinancialYear.id).where(
            FinancialYear.company_id == company_id,
            func.lower(FinancialYear.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.where(FinancialYear.id != exclude_id)
        return (await self.db.execute(query)).first() is None

    async def find_overlapping(
        self,
        start_date: date,
        end_date: date,
        company_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> List[FinancialYear]:
        query = select(FinancialYear).where(
            FinancialYear.company_id == company_id,
            FinancialYear.is_active.is_(True),
            FinancialYear.start_date <= end_date,
            FinancialYear.end_date >= start_date,
        )
        if exclude_id is not None:
            query = query.where(FinancialYear.id != exclude_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def has_postings(self, year_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(GeneralLedger.id).where(GeneralLedger.financial_year_id == year_id).limit(1)
        )
        return result.first() is not None

    async def require_open_year(self, year_id: uuid.UUID, company_id: uuid.UUID) -> FinancialYear:
        """Financial year owned by the company that still accepts postings."""
        year = await self.get_year(year_id, company_id)
        if year.is_closed:
            raise ClosedFinancialYearException(year.name)
        return year

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def create_year(
        self, data: FinancialYearCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> FinancialYear:
        if not await self.is_name_available(data.name, company_id):
            raise DuplicateEntryException("Financial year", "name", data.name)
        if data.is_active and await self.find_overlapping(data.start_date, data.end_date, company_id):
            raise BusinessRuleException(
                "Financial year dates overlap with an existing active financial year",
                rule="NO_OVERLAPPING_YEARS",
            )

        is_first = (await self.db.execute(
            select(FinancialYear.id).where(FinancialYear.company_id == company_id).limit(1)
        )).first() is None

        year = FinancialYear(
            company_id=company_id,
            name=data.name.strip(),
            start_date=data.start_date,
            end_date=data.end_date,
            description=data.description,
            is_active=data.is_active,
            # First year of a company becomes current
            is_current=is_first,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(year)
        await self.db.flush()
        return year

    async def update_year(
        self,
        year_id: uuid.UUID,
        data: FinancialYearUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> FinancialYear:
        year = await self.get_year(year_id, company_id)
        if year.is_closed:
            raise BusinessRuleException("Cannot update a closed financial year", rule="FINANCIAL_YEAR_OPEN")

        changes = data.changed_fields("description")
        if "name" in changes and not await self.is_name_available(changes["name"], company_id, exclude_id=year.id):
            raise DuplicateEntryException("Financial year", "name", changes["name"])

        start = changes.get("start_date", year.start_date)
        end = changes.get("end_date", year.end_date)
        if start >= end:
            raise InvalidDateRangeException(start, end)
        active = changes.get("is_active", year.is_active)
        if active and await self.find_overlapping(start, end, company_id, exclude_id=year.id):
            raise BusinessRuleException(
                "Financial year dates overlap with an existing active financial year",
                rule="NO_OVERLAPPING_YEARS",
            )

        for field, value in changes.items():
            setattr(year, field, value)
        year.updated_by_id = user_id
        await self.db.flush()
        return year

    async def set_current(self, year_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> FinancialYear:
        year = await self.get_year(year_id, company_id)
        if not year.is_active:
            raise BusinessRuleException("Only an active financial year can be made current")
        if year.is_closed:
            raise ClosedFinancialYearException(year.name)

        await self.db.execute(
            update(FinancialYear)
            .where(FinancialYear.company_id == company_id, FinancialYear.id != year.id)
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )
        year.is_current = True
        year.updated_by_id = user_id
        await self.db.flush()
        logger.info(f"Financial year {year.name} set as current for company {company_id}")
        return year

    async def close_year(
        self,
        year_id: uuid.UUID,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        closing_notes: Optional[str] = None,
    ) -> FinancialYear:
        year = await self.get_year(year_id, company_id)
        if year.is_closed:
            raise BusinessRuleException("Financial year is already closed", rule="FINANCIAL_YEAR_OPEN")
        if year.is_current:
            raise BusinessRuleException(
                "Cannot close the current financial year. Set another year as current first.",
                rule="CURRENT_YEAR_OPEN",
            )
        if not year.can_be_closed():
            raise BusinessRuleException(
                "Financial year can only be closed when it is active and its end date has passed",
                rule="YEAR_ENDED",
            )

        year.is_closed = True
        year.closed_at = utcnow()
        year.closed_by_id = user_id
        year.closing_notes = closing_notes
        year.updated_by_id = user_id
        await self.db.flush()
        logger.info(f"Financial year {year.name} closed by {user_id}")
        return year

    async def reopen_year(self, year_id: uuid.UUID, company_id: uuid.UUID, user_id: uuid.UUID) -> FinancialYear:
        year = await self.get_year(year_id, company_id)
        if not year.is_closed:
            raise BusinessRuleException("Financial year is not closed")

        year.is_closed = False
        year.closed_at = None
        year.closed_by_id = None
        year.updated_by_id = user_id
        await self.db.flush()
        logger.warning(f"Financial year {year.name} reopened by {user_id}")
        return year

    async def delete_year(self, year_id: uuid.UUID, company_id: uuid.UUID) -> None:
        year = await self.get_year(year_id, company_id)
        if year.is_current:
            raise BusinessRuleException("Cannot delete the current financial year")
        if year.is_closed:
            raise BusinessRuleException("Cannot delete a closed financial year")
        if await self.has_postings(year.id):
            raise BusinessRuleException(
                "Cannot delete a financial year that has general ledger postings",
                rule="NO_POSTINGS",
            )
        await self.db.delete(year)
        await self.db.flush()
