"""
POS Back Office - General Ledger Service

Writes and reads the flattened general ledger. Each posted document line
becomes one row carrying snapshots of the document, the account and the
account type. Balances are always ``sum(equivalent debit) - sum(equivalent credit)``.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.account import Account, AccountType
from backoffice.models.base import utcnow
from backoffice.models.financial_year import FinancialYear
from backoffice.models.general_ledger import (
    GeneralLedger,
    LedgerTransactionType,
    TRANSACTION_TYPE_NAMES,
)
from backoffice.models.user import User
from backoffice.utils.error_handling import ClosedFinancialYearException
from backoffice.utils.ledger import equivalent_amount, split_sides, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class LedgerPosting:
    """Document-level context shared by every row of one posting."""

    company_id: uuid.UUID
    financial_year: FinancialYear
    reference_number: str
    transaction_type: LedgerTransactionType
    transaction_date: date
    user: User
    system_currency_id: uuid.UUID
    description: Optional[str] = None


class GeneralLedgerService:
    """Service for general ledger postings and balances."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # BALANCES
    # =========================================================================

    async def account_totals(
        self,
        account_id: uuid.UUID,
        financial_year_id: uuid.UUID,
        company_id: uuid.UUID,
        as_of: Optional[date] = None,
    ) -> Tuple[Decimal, Decimal]:
        query = select(
            func.coalesce(func.sum(GeneralLedger.equivalent_debit_amount), 0),
            func.coalesce(func.sum(GeneralLedger.equivalent_credit_amount), 0),
        ).where(
            GeneralLedger.account_id == account_id,
            GeneralLedger.financial_year_id == financial_year_id,
            GeneralLedger.company_id == company_id,
        )
        if as_of is not None:
            query = query.where(GeneralLedger.transaction_date <= as_of)
        debit, credit = (await self.db.execute(query)).one()
        return to_decimal(debit), to_decimal(credit)

    async def account_balance(
        self,
        account_id: uuid.UUID,
        financial_year_id: uuid.UUID,
        company_id: uuid.UUID,
        as_of: Optional[date] = None,
    ) -> Decimal:
        """Current balance (debit minus credit) of an account up to ``as_of``."""
        debit, credit = await self.account_totals(account_id, financial_year_id, company_id, as_of)
        return debit - credit

    # =========================================================================
    # POSTING
    # =========================================================================

    def build_row(
        self,
        posting: LedgerPosting,
        account: Account,
        account_type: Optional[AccountType],
        line_type: str,
        original_amount,
        equivalent: Optional[Decimal] = None,
        exchange_rate=None,
        description: Optional[str] = None,
    ) -> GeneralLedger:
        rate = to_decimal(exchange_rate) if exchange_rate not in (None, "") else Decimal("1")
        original = to_decimal(original_amount)
        equivalent = to_decimal(equivalent) if equivalent is not None else equivalent_amount(original, rate)
        user = posting.user
        return GeneralLedger(
            company_id=posting.company_id,
            financial_year_code=posting.financial_year.name,
            financial_year_id=posting.financial_year.id,
            system_date=utcnow(),
            transaction_date=posting.transaction_date,
            reference_number=posting.reference_number,
            transaction_type=posting.transaction_type.value,
            transaction_type_name=TRANSACTION_TYPE_NAMES[posting.transaction_type],
            created_by_code=str(user.id),
            created_by_name=user.full_name or user.username,
            description=description or posting.description,
            account_type_code=account_type.code if account_type else None,
            account_type_name=account_type.name if account_type else None,
            account_type_id=account_type.id if account_type else None,
            account_id=account.id,
            account_name=account.name,
            account_code=account.code,
            account_nature=line_type,
            exchange_rate=rate,
            amount=equivalent,
            system_currency_id=posting.system_currency_id,
            username=user.username,
            **split_sides(line_type, original, equivalent),
        )

    async def post_rows(self, posting: LedgerPosting, rows: List[GeneralLedger]) -> List[GeneralLedger]:
        if posting.financial_year.is_closed:
            raise ClosedFinancialYearException(posting.financial_year.name)
        self.db.add_all(rows)
        await self.db.flush()
        logger.info(
            f"Posted {len(rows)} ledger rows for {posting.transaction_type.value} {posting.reference_number}"
        )
        return rows

    async def delete_by_reference(
        self,
        reference_number: str,
        transaction_type: LedgerTransactionType,
        company_id: uuid.UUID,
    ) -> int:
        result = await self.db.execute(
            delete(GeneralLedger)
            .where(
                GeneralLedger.reference_number == reference_number,
                GeneralLedger.transaction_type == transaction_type.value,
                GeneralLedger.company_id == company_id,
            )
            .execution_options(synchronize_session=False)
        )
        logger.info(
            f"Removed {result.rowcount} ledger rows for {transaction_type.value} {reference_number}"
        )
        return result.rowcount

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_entries(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        account_id: Optional[uuid.UUID] = None,
        financial_year_id: Optional[uuid.UUID] = None,
        transaction_type: Optional[str] = None,
        reference_number: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[GeneralLedger], int]:
        query = select(GeneralLedger)
        if company_id is not None:
            query = query.where(GeneralLedger.company_id == company_id)
        if account_id:
            query = query.where(GeneralLedger.account_id == account_id)
        if financial_year_id:
            query = query.where(GeneralLedger.financial_year_id == financial_year_id)
        if transaction_type:
            query = query.where(GeneralLedger.transaction_type == transaction_type)
        if reference_number:
            query = query.where(GeneralLedger.reference_number.ilike(f"%{reference_number}%"))
        if start_date:
            query = query.where(GeneralLedger.transaction_date >= start_date)
        if end_date:
            query = query.where(GeneralLedger.transaction_date <= end_date)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(
            GeneralLedger.transaction_date.desc(), GeneralLedger.system_date.desc(),
        ).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def count_for_reference(
        self, reference_number: str, transaction_type: LedgerTransactionType, company_id: uuid.UUID,
    ) -> int:
        result = await self.db.execute(
            select(func.count(GeneralLedger.id)).where(
                GeneralLedger.reference_number == reference_number,
                GeneralLedger.transaction_type == transaction_type.value,
                GeneralLedger.company_id == company_id,
            )
        )
        return result.scalar_one()
