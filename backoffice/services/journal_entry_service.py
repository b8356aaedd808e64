"""
POS Back Office - Journal Entry Service

Balanced, multi-line, optionally multi-currency journal entries.

Rules enforced on create and update:
- at least two lines, each a debit or a credit
- equivalent amount = original amount x exchange rate (rate defaults to 1)
- debit and credit equivalents agree within the configured tolerance
- the financial year belongs to the company and is open
- every account belongs to the company
- no line overdraws its account's current ledger balance

Posting copies each line into the general ledger; unposting removes those rows.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.account import Account
from backoffice.models.base import utcnow
from backoffice.models.currency import Currency, ExchangeRate
from backoffice.models.financial_year import FinancialYear
from backoffice.models.general_ledger import LedgerTransactionType
from backoffice.models.journal_entry import JournalEntry, JournalEntryLine
from backoffice.models.user import User
from backoffice.schemas.journal_entry import (
    JournalEntryCreate,
    JournalEntryLineInput,
    JournalEntryUpdate,
)
from backoffice.services.account_service import AccountService
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.services.currency_service import CurrencyService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.services.general_ledger_service import GeneralLedgerService, LedgerPosting
from backoffice.utils.error_handling import (
    BusinessRuleException,
    InsufficientBalanceException,
    NotFoundException,
    PostedEntryLockedException,
    UnbalancedEntryException,
    ValidationException,
)
from backoffice.utils.ledger import (
    ONE,
    ZERO,
    check_line_against_balance,
    equivalent_amount,
    is_balanced,
    quantize_money,
    sum_sides,
    to_decimal,
)
from backoffice.utils.sequencing import (
    format_journal_reference,
    next_sequence,
    retry_on_unique_violation,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "entry_date": JournalEntry.entry_date,
    "reference_number": JournalEntry.reference_number,
    "total_debit": JournalEntry.total_debit,
    "total_credit": JournalEntry.total_credit,
    "created_at": JournalEntry.created_at,
    "is_posted": JournalEntry.is_posted,
}


@dataclass
class PreparedLine:
    account: Account
    type: str
    original_amount: Decimal
    exchange_rate: Decimal
    equivalent_amount: Decimal
    currency_id: Optional[uuid.UUID]
    exchange_rate_id: Optional[uuid.UUID]
    description: Optional[str]


class JournalEntryService:
    """Service for journal entries and their ledger postings."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)
        self.years = FinancialYearService(db)
        self.ledger = GeneralLedgerService(db)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_entries(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        sort_by: str = "entry_date",
        sort_order: str = "desc",
        financial_year_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        is_posted: Optional[bool] = None,
    ) -> Tuple[List[JournalEntry], int]:
        query = select(JournalEntry)
        if company_id is not None:
            query = query.where(JournalEntry.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                JournalEntry.description.ilike(pattern),
                JournalEntry.reference_number.ilike(pattern),
            ))
        if financial_year_id:
            query = query.where(JournalEntry.financial_year_id == financial_year_id)
        if start_date:
            query = query.where(JournalEntry.entry_date >= start_date)
        if end_date:
            query = query.where(JournalEntry.entry_date <= end_date)
        if is_posted is not None:
            query = query.where(JournalEntry.is_posted == is_posted)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()

        column = SORTABLE_FIELDS.get(sort_by, JournalEntry.entry_date)
        ordering = column.asc() if sort_order.lower() == "asc" else column.desc()
        query = query.order_by(ordering, JournalEntry.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_entry(self, entry_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> JournalEntry:
        query = select(JournalEntry).where(JournalEntry.id == entry_id)
        if company_id is not None:
            query = query.where(JournalEntry.company_id == company_id)
        entry = (await self.db.execute(query)).scalar_one_or_none()
        if entry is None:
            raise NotFoundException("Journal entry", entry_id)
        return entry

    async def get_stats(
        self, company_id: Optional[uuid.UUID], financial_year_id: Optional[uuid.UUID] = None,
    ) -> dict:
        query = select(
            func.count(JournalEntry.id),
            func.coalesce(func.sum(JournalEntry.total_debit), 0),
            func.coalesce(func.sum(JournalEntry.total_credit), 0),
        )
        posted_query = select(func.count(JournalEntry.id)).where(JournalEntry.is_posted.is_(True))
        if company_id is not None:
            query = query.where(JournalEntry.company_id == company_id)
            posted_query = posted_query.where(JournalEntry.company_id == company_id)
        if financial_year_id:
            query = query.where(JournalEntry.financial_year_id == financial_year_id)
            posted_query = posted_query.where(JournalEntry.financial_year_id == financial_year_id)

        total, total_debit, total_credit = (await self.db.execute(query)).one()
        posted = (await self.db.execute(posted_query)).scalar_one()
        return {
            "total_entries": total,
            "posted_entries": posted,
            "draft_entries": total - posted,
            "total_debit": to_decimal(total_debit),
            "total_credit": to_decimal(total_credit),
        }

    # =========================================================================
    # VALIDATION
    # =========================================================================

    async def _check_currencies(self, lines: List[JournalEntryLineInput], company_id: uuid.UUID) -> Dict[uuid.UUID, ExchangeRate]:
        currency_ids = {line.currency_id for line in lines if line.currency_id}
        if currency_ids:
            owned = (await self.db.execute(
                select(func.count(Currency.id)).where(
                    Currency.id.in_(currency_ids), Currency.company_id == company_id,
                )
            )).scalar_one()
            if owned != len(currency_ids):
                raise ValidationException("Line currency does not belong to your company", field="currency_id")

        rate_ids = {line.exchange_rate_id for line in lines if line.exchange_rate_id}
        if not rate_ids:
            return {}
        result = await self.db.execute(
            select(ExchangeRate).where(ExchangeRate.id.in_(rate_ids), ExchangeRate.company_id == company_id)
        )
        rates = {r.id: r for r in result.scalars().all()}
        if len(rates) != len(rate_ids):
            raise ValidationException("Exchange rate does not belong to your company", field="exchange_rate_id")
        return rates

    async def prepare_lines(
        self,
        lines: List[JournalEntryLineInput],
        company_id: uuid.UUID,
        financial_year: FinancialYear,
        entry_date: date,
    ) -> Tuple[List[PreparedLine], Decimal, Decimal]:
        """
        Resolve accounts, compute equivalents and run every balance rule.

        Returns the prepared lines with the debit and credit totals.
        """
        if len(lines) < 2:
            raise ValidationException("Journal entry must have at least two lines", field="lines")

        accounts = await self.accounts.get_accounts_map((line.account_id for line in lines), company_id)
        rates = await self._check_currencies(lines, company_id)

        prepared: List[PreparedLine] = []
        for line in lines:
            rate = line.exchange_rate
            if rate is None and line.exchange_rate_id:
                rate = rates[line.exchange_rate_id].rate
            rate = to_decimal(rate) if rate is not None else ONE
            original = to_decimal(line.original_amount if line.original_amount is not None else line.amount)
            prepared.append(PreparedLine(
                account=accounts[line.account_id],
                type=line.type.value,
                original_amount=original,
                exchange_rate=rate,
                equivalent_amount=equivalent_amount(original, rate),
                currency_id=line.currency_id,
                exchange_rate_id=line.exchange_rate_id,
                description=line.description,
            ))

        total_debit, total_credit = sum_sides(prepared)
        if total_debit <= ZERO and total_credit <= ZERO:
            raise ValidationException("Journal entry must have a non-zero amount", field="lines")
        if not is_balanced(total_debit, total_credit, settings.balance_tolerance):
            raise UnbalancedEntryException(quantize_money(total_debit), quantize_money(total_credit))

        for number, line in enumerate(prepared, start=1):
            balance = await self.ledger.account_balance(
                line.account.id, financial_year.id, company_id, as_of=entry_date,
            )
            error = check_line_against_balance(
                line.account.nature,
                line.type,
                line.equivalent_amount,
                balance,
                account_label=f"account {line.account.code} ({line.account.name})",
            )
            if error:
                raise InsufficientBalanceException(error, account_id=line.account.id, line_number=number)

        return prepared, total_debit, total_credit

    def _build_lines(self, prepared: List[PreparedLine], company_id: uuid.UUID) -> List[JournalEntryLine]:
        return [
            JournalEntryLine(
                company_id=company_id,
                account_id=line.account.id,
                account_type_id=line.account.account_type_id,
                type=line.type,
                amount=quantize_money(line.equivalent_amount),
                original_amount=line.original_amount,
                equivalent_amount=line.equivalent_amount,
                currency_id=line.currency_id,
                exchange_rate_id=line.exchange_rate_id,
                exchange_rate=line.exchange_rate,
                description=line.description,
                line_number=number,
            )
            for number, line in enumerate(prepared, start=1)
        ]

    # =========================================================================
    # REFERENCE NUMBERS
    # =========================================================================

    async def next_reference(self, financial_year: FinancialYear, entry_date: date, company_id: uuid.UUID) -> str:
        """``JE/{year}/{YYYYMMDD}/{COMPANY_CODE}/{seq}``, continuing the year's sequence."""
        company_code = await AutoCodeService(self.db).get_company_code(company_id)
        year = entry_date.year
        scope = (
            JournalEntry.company_id == company_id,
            JournalEntry.financial_year_id == financial_year.id,
            JournalEntry.reference_number.like(f"JE/{year}/%"),
        )
        last = (await self.db.execute(
            select(JournalEntry.reference_number)
            .where(*scope)
            .order_by(JournalEntry.created_at.desc(), JournalEntry.reference_number.desc())
            .limit(1)
        )).scalar_one_or_none()
        count = (await self.db.execute(select(func.count(JournalEntry.id)).where(*scope))).scalar_one()
        return format_journal_reference(year, entry_date, company_code, next_sequence(last, count))

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def create_entry(self, data: JournalEntryCreate, company_id: uuid.UUID, user: User) -> JournalEntry:
        financial_year = await self.years.require_open_year(data.financial_year_id, company_id)
        prepared, total_debit, total_credit = await self.prepare_lines(
            data.lines, company_id, financial_year, data.entry_date,
        )

        async def insert() -> JournalEntry:
            entry = JournalEntry(
                company_id=company_id,
                reference_number=await self.next_reference(financial_year, data.entry_date, company_id),
                entry_date=data.entry_date,
                description=data.description,
                financial_year_id=financial_year.id,
                currency_id=data.currency_id,
                total_debit=quantize_money(total_debit),
                total_credit=quantize_money(total_credit),
                is_posted=False,
                created_by_id=user.id,
                updated_by_id=user.id,
                lines=self._build_lines(prepared, company_id),
            )
            self.db.add(entry)
            await self.db.flush()
            return entry

        entry = await retry_on_unique_violation(
            self.db, insert, "journal entry", attempts=settings.reference_max_retries,
        )
        logger.info(f"Journal entry {entry.reference_number} created by {user.username}")
        return entry

    async def update_entry(
        self,
        entry_id: uuid.UUID,
        data: JournalEntryUpdate,
        company_id: uuid.UUID,
        user: User,
    ) -> JournalEntry:
        entry = await self.get_entry(entry_id, company_id)
        if entry.is_posted:
            raise PostedEntryLockedException(entry.reference_number, "update")

        # A null date or year means "unchanged"; only these two may be cleared
        changes = data.changed_fields("description", "currency_id", exclude={"lines"})
        year_id = changes.get("financial_year_id", entry.financial_year_id)
        financial_year = await self.years.require_open_year(year_id, company_id)
        entry_date = changes.get("entry_date", entry.entry_date)

        if data.lines is not None:
            prepared, total_debit, total_credit = await self.prepare_lines(
                data.lines, company_id, financial_year, entry_date,
            )
            entry.lines = self._build_lines(prepared, company_id)
            entry.total_debit = quantize_money(total_debit)
            entry.total_credit = quantize_money(total_credit)

        for field, value in changes.items():
            setattr(entry, field, value)
        entry.updated_by_id = user.id
        await self.db.flush()
        return entry

    async def delete_entry(self, entry_id: uuid.UUID, company_id: uuid.UUID) -> None:
        entry = await self.get_entry(entry_id, company_id)
        if entry.is_posted:
            raise PostedEntryLockedException(entry.reference_number, "delete")
        await self.db.delete(entry)
        await self.db.flush()

    async def post_entry(self, entry_id: uuid.UUID, company_id: uuid.UUID, user: User) -> JournalEntry:
        entry = await self.get_entry(entry_id, company_id)
        if entry.is_posted:
            raise BusinessRuleException(
                f"Journal entry {entry.reference_number} is already posted",
                rule="POST_ONCE",
            )
        if not entry.lines:
            raise BusinessRuleException("Journal entry has no lines to post")

        total_debit, total_credit = sum_sides(entry.lines)
        if not is_balanced(total_debit, total_credit, settings.balance_tolerance):
            raise UnbalancedEntryException(quantize_money(total_debit), quantize_money(total_credit))

        financial_year = await self.years.require_open_year(entry.financial_year_id, company_id)
        default_currency = await CurrencyService(self.db).find_default_currency(company_id)
        if default_currency is None:
            raise BusinessRuleException(
                "A default currency must be configured before posting",
                rule="DEFAULT_CURRENCY_REQUIRED",
            )

        accounts = await self.accounts.get_accounts_map((line.account_id for line in entry.lines), company_id)
        account_types = await self.accounts.get_account_types_map(a.account_type_id for a in accounts.values())

        posting = LedgerPosting(
            company_id=company_id,
            financial_year=financial_year,
            reference_number=entry.reference_number,
            transaction_type=LedgerTransactionType.JOURNAL_ENTRY,
            transaction_date=entry.entry_date,
            user=user,
            system_currency_id=default_currency.id,
            description=entry.description,
        )
        rows = []
        for line in entry.lines:
            account = accounts[line.account_id]
            rows.append(self.ledger.build_row(
                posting,
                account,
                account_types.get(account.account_type_id),
                line.type,
                line.original_amount,
                equivalent=line.equivalent_amount,
                exchange_rate=line.exchange_rate,
                description=line.description,
            ))
        await self.ledger.post_rows(posting, rows)

        entry.is_posted = True
        entry.posted_at = utcnow()
        entry.posted_by_id = user.id
        entry.updated_by_id = user.id
        await self.db.flush()
        logger.info(f"Journal entry {entry.reference_number} posted by {user.username}")
        return entry

    async def unpost_entry(self, entry_id: uuid.UUID, company_id: uuid.UUID, user: User) -> JournalEntry:
        entry = await self.get_entry(entry_id, company_id)
        if not entry.is_posted:
            raise BusinessRuleException(f"Journal entry {entry.reference_number} is not posted")
        await self.years.require_open_year(entry.financial_year_id, company_id)

        await self.ledger.delete_by_reference(
            entry.reference_number, LedgerTransactionType.JOURNAL_ENTRY, company_id,
        )
        entry.is_posted = False
        entry.posted_at = None
        entry.posted_by_id = None
        entry.updated_by_id = user.id
        await self.db.flush()
        logger.info(f"Journal entry {entry.reference_number} unposted by {user.username}")
        return entry
