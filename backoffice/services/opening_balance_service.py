"""
POS Back Office - Opening Balance Service

Opening balances carry an account's position into a financial year. An
account has at most one opening balance per year, and each one is mirrored
by a single general ledger row under the balance's reference number. Only
balances of the company's current financial year can be changed or removed.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.account import Account, AccountStatus
from backoffice.models.financial_year import FinancialYear
from backoffice.models.general_ledger import LedgerTransactionType
from backoffice.models.journal_entry import LineType
from backoffice.models.opening_balance import OpeningBalance
from backoffice.models.user import User
from backoffice.schemas.opening_balance import OpeningBalanceCreate, OpeningBalanceUpdate
from backoffice.services.account_service import AccountService
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.services.currency_service import CurrencyService
from backoffice.services.exchange_rate_service import ExchangeRateService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.services.general_ledger_service import GeneralLedgerService, LedgerPosting
from backoffice.utils.error_handling import (
    BusinessRuleException,
    DuplicateEntryException,
    NotFoundException,
    PastYearLockedException,
    ValidationException,
)
from backoffice.utils.ledger import ONE, equivalent_amount, quantize_money, to_decimal
from backoffice.utils.sequencing import (
    format_opening_balance_reference,
    next_sequence,
    retry_on_unique_violation,
)

logger = logging.getLogger(__name__)


class OpeningBalanceService:
    """Service for opening balances and their ledger rows."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)
        self.currencies = CurrencyService(db)
        self.rates = ExchangeRateService(db)
        self.years = FinancialYearService(db)
        self.ledger = GeneralLedgerService(db)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_balances(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        financial_year_id: Optional[uuid.UUID] = None,
        account_category: Optional[str] = None,
        balance_type: Optional[str] = None,
    ) -> Tuple[List[OpeningBalance], int]:
        query = select(OpeningBalance).join(Account, Account.id == OpeningBalance.account_id)
        if company_id is not None:
            query = query.where(OpeningBalance.company_id == company_id)
        if financial_year_id:
            query = query.where(OpeningBalance.financial_year_id == financial_year_id)
        if account_category:
            query = query.where(Account.type == account_category)
        if balance_type:
            query = query.where(OpeningBalance.type == balance_type)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                OpeningBalance.description.ilike(pattern),
                OpeningBalance.reference_number.ilike(pattern),
                Account.name.ilike(pattern),
                Account.code.ilike(pattern),
            ))

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(OpeningBalance.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_balance(self, balance_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> OpeningBalance:
        query = select(OpeningBalance).where(OpeningBalance.id == balance_id)
        if company_id is not None:
            query = query.where(OpeningBalance.company_id == company_id)
        balance = (await self.db.execute(query)).scalar_one_or_none()
        if balance is None:
            raise NotFoundException("Opening balance", balance_id)
        return balance

    async def find_for_account(
        self, account_id: uuid.UUID, financial_year_id: uuid.UUID, company_id: Optional[uuid.UUID],
    ) -> Optional[OpeningBalance]:
        query = select(OpeningBalance).where(
            OpeningBalance.account_id == account_id,
            OpeningBalance.financial_year_id == financial_year_id,
        )
        if company_id is not None:
            query = query.where(OpeningBalance.company_id == company_id)
        return (await self.db.execute(query.limit(1))).scalar_one_or_none()

    async def accounts_without_balances(
        self, financial_year_id: uuid.UUID, company_id: Optional[uuid.UUID],
    ) -> List[Account]:
        """Active leaf accounts that have no opening balance in the year."""
        with_balance = select(OpeningBalance.account_id).where(
            OpeningBalance.financial_year_id == financial_year_id,
        )
        parents = select(Account.parent_id).where(Account.parent_id.is_not(None))
        query = select(Account).where(
            Account.status == AccountStatus.ACTIVE,
            Account.id.not_in(with_balance),
            Account.id.not_in(parents),
        )
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        result = await self.db.execute(query.order_by(Account.name))
        return list(result.scalars().all())

    async def get_stats(
        self, company_id: Optional[uuid.UUID], financial_year_id: Optional[uuid.UUID] = None,
    ) -> dict:
        debit = case((OpeningBalance.type == LineType.DEBIT.value, OpeningBalance.equivalent_amount), else_=0)
        credit = case((OpeningBalance.type == LineType.CREDIT.value, OpeningBalance.equivalent_amount), else_=0)
        query = select(
            func.count(OpeningBalance.id),
            func.coalesce(func.sum(debit), 0),
            func.coalesce(func.sum(credit), 0),
        )
        years_query = select(func.count(FinancialYear.id)).where(FinancialYear.is_active.is_(True))
        if company_id is not None:
            query = query.where(OpeningBalance.company_id == company_id)
            years_query = years_query.where(FinancialYear.company_id == company_id)
        if financial_year_id:
            query = query.where(OpeningBalance.financial_year_id == financial_year_id)

        total, total_debit, total_credit = (await self.db.execute(query)).one()
        total_debit, total_credit = to_decimal(total_debit), to_decimal(total_credit)
        return {
            "total_opening_balances": total,
            "total_debit_amount": total_debit,
            "total_credit_amount": total_credit,
            "active_financial_years": (await self.db.execute(years_query)).scalar_one(),
            "delta": total_credit - total_debit,
        }

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def resolve_rate(
        self,
        company_id: uuid.UUID,
        on_date: date,
        currency_id: Optional[uuid.UUID],
        exchange_rate_id: Optional[uuid.UUID],
        exchange_rate: Optional[Decimal],
    ) -> Decimal:
        """Explicit rate, then the rate record, then 1 in the default currency, then the latest rate."""
        currency = await self.currencies.get_currency(currency_id, company_id) if currency_id else None
        record = await self.rates.get_rate(exchange_rate_id, company_id) if exchange_rate_id else None
        if exchange_rate is not None:
            return to_decimal(exchange_rate)
        if record is not None:
            return to_decimal(record.rate)

        default = await self.currencies.find_default_currency(company_id)
        if currency is None or default is None or default.id == currency.id:
            return ONE
        effective = await self.rates.find_effective_rate(currency.id, default.id, company_id, on_date)
        if effective is None:
            raise ValidationException(
                f"No exchange rate from {currency.code} to the default currency {default.code}",
                field="exchange_rate",
            )
        return to_decimal(effective.rate)

    def _check_date(self, balance_date: date, year: FinancialYear) -> None:
        if not year.contains(balance_date):
            raise BusinessRuleException(
                f"Date {balance_date} is outside the financial year "
                f"'{year.name}' ({year.start_date} to {year.end_date})",
                rule="DATE_IN_FINANCIAL_YEAR",
                field="balance_date",
            )

    async def _require_current_year(self, balance: OpeningBalance, action: str) -> FinancialYear:
        current = await self.years.get_current(balance.company_id)
        if current is None or current.id != balance.financial_year_id:
            raise PastYearLockedException("opening balance", action)
        return await self.years.require_open_year(balance.financial_year_id, balance.company_id)

    async def next_reference(self, year: FinancialYear, company_id: uuid.UUID) -> str:
        """``{YEAR}/{START}_{END}/{COMPANY_CODE}/{seq}``, numbered within the financial year."""
        company_code = await AutoCodeService(self.db).get_company_code(company_id)
        scope = (
            OpeningBalance.company_id == company_id,
            OpeningBalance.financial_year_id == year.id,
        )
        last = (await self.db.execute(
            select(OpeningBalance.reference_number)
            .where(*scope)
            .order_by(OpeningBalance.created_at.desc(), OpeningBalance.reference_number.desc())
            .limit(1)
        )).scalar_one_or_none()
        count = (await self.db.execute(select(func.count(OpeningBalance.id)).where(*scope))).scalar_one()
        return format_opening_balance_reference(
            year.start_date, year.end_date, company_code, next_sequence(last, count),
        )

    async def _post(self, balance: OpeningBalance, year: FinancialYear, user: User) -> None:
        default_currency = await self.currencies.find_default_currency(balance.company_id)
        if default_currency is None:
            raise BusinessRuleException(
                "A default currency must be configured before posting",
                rule="DEFAULT_CURRENCY_REQUIRED",
            )
        account = await self.accounts.get_account(balance.account_id, balance.company_id)
        account_types = await self.accounts.get_account_types_map([account.account_type_id])

        posting = LedgerPosting(
            company_id=balance.company_id,
            financial_year=year,
            reference_number=balance.reference_number,
            transaction_type=LedgerTransactionType.OPENING_BALANCE,
            transaction_date=balance.balance_date,
            user=user,
            system_currency_id=default_currency.id,
            description=balance.description or f"Opening balance for {account.name}",
        )
        row = self.ledger.build_row(
            posting,
            account,
            account_types.get(account.account_type_id),
            balance.type,
            balance.original_amount,
            equivalent=balance.equivalent_amount,
            exchange_rate=balance.exchange_rate,
        )
        await self.ledger.post_rows(posting, [row])

    async def _unpost(self, balance: OpeningBalance) -> None:
        await self.ledger.delete_by_reference(
            balance.reference_number, LedgerTransactionType.OPENING_BALANCE, balance.company_id,
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def create_balance(
        self, data: OpeningBalanceCreate, company_id: uuid.UUID, user: User,
    ) -> OpeningBalance:
        year = await self.years.require_open_year(data.financial_year_id, company_id)
        self._check_date(data.balance_date, year)
        accounts = await self.accounts.get_accounts_map([data.account_id], company_id)
        account = accounts[data.account_id]
        if await self.find_for_account(account.id, year.id, company_id) is not None:
            raise DuplicateEntryException(
                "Opening balance", "account_id", f"{account.code} in {year.name}",
            )

        rate = await self.resolve_rate(
            company_id, data.balance_date, data.currency_id, data.exchange_rate_id, data.exchange_rate,
        )
        amount = quantize_money(to_decimal(data.amount))

        async def insert() -> OpeningBalance:
            balance = OpeningBalance(
                company_id=company_id,
                reference_number=await self.next_reference(year, company_id),
                account_id=account.id,
                account_type_id=account.account_type_id,
                financial_year_id=year.id,
                balance_date=data.balance_date,
                type=data.type.value,
                description=data.description,
                amount=amount,
                original_amount=quantize_money(to_decimal(data.original_amount or amount)),
                currency_id=data.currency_id,
                exchange_rate_id=data.exchange_rate_id,
                exchange_rate=rate,
                equivalent_amount=equivalent_amount(amount, rate),
                created_by_id=user.id,
                updated_by_id=user.id,
            )
            self.db.add(balance)
            await self.db.flush()
            return balance

        balance = await retry_on_unique_violation(
            self.db, insert, "opening balance", attempts=settings.reference_max_retries,
        )
        await self._post(balance, year, user)
        logger.info(f"Opening balance {balance.reference_number} created by {user.username}")
        return balance

    async def update_balance(
        self,
        balance_id: uuid.UUID,
        data: OpeningBalanceUpdate,
        company_id: uuid.UUID,
        user: User,
    ) -> OpeningBalance:
        balance = await self.get_balance(balance_id, company_id)
        year = await self._require_current_year(balance, "update")

        changes = data.changed_fields("description", "currency_id", "exchange_rate_id")
        if "type" in changes:
            changes["type"] = changes["type"].value
        balance_date = changes.get("balance_date", balance.balance_date)
        self._check_date(balance_date, year)
        # A new currency does not keep the old currency's rate record
        if "currency_id" in changes and "exchange_rate_id" not in changes:
            changes["exchange_rate_id"] = None

        repriced = any(
            field in changes for field in ("currency_id", "exchange_rate_id", "exchange_rate")
        )
        if repriced:
            changes["exchange_rate"] = await self.resolve_rate(
                company_id,
                balance_date,
                changes.get("currency_id", balance.currency_id),
                changes.get("exchange_rate_id", balance.exchange_rate_id),
                changes.get("exchange_rate"),
            )
        if "amount" in changes:
            changes["amount"] = quantize_money(to_decimal(changes["amount"]))
            changes.setdefault("original_amount", changes["amount"])
        if "original_amount" in changes:
            changes["original_amount"] = quantize_money(to_decimal(changes["original_amount"]))

        for field, value in changes.items():
            setattr(balance, field, value)
        balance.equivalent_amount = equivalent_amount(to_decimal(balance.amount), to_decimal(balance.exchange_rate))
        balance.updated_by_id = user.id
        await self.db.flush()

        await self._unpost(balance)
        await self._post(balance, year, user)
        logger.info(f"Opening balance {balance.reference_number} updated by {user.username}")
        return balance

    async def delete_balance(self, balance_id: uuid.UUID, company_id: uuid.UUID) -> None:
        balance = await self.get_balance(balance_id, company_id)
        await self._require_current_year(balance, "delete")
        await self._unpost(balance)
        await self.db.delete(balance)
        await self.db.flush()
        logger.info(f"Opening balance {balance.reference_number} deleted")
