"""
POS Back Office - Trial Balance Service

Aggregates a financial year's general ledger per account and groups the
accounts by account type. Accounts with postings always appear; accounts
without any appear only when zero balances are requested.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.account import Account, AccountStatus, AccountType
from backoffice.models.base import utcnow
from backoffice.models.general_ledger import GeneralLedger
from backoffice.models.user import User
from backoffice.services.currency_service import CurrencyService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.utils.error_handling import InvalidDateRangeException
from backoffice.utils.ledger import CENT, ZERO, side_balance, to_decimal

logger = logging.getLogger(__name__)


class TrialBalanceService:
    """Service for trial balance reporting."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ledger_totals(
        self,
        company_id: uuid.UUID,
        financial_year_id: uuid.UUID,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> Dict[uuid.UUID, tuple]:
        query = (
            select(
                GeneralLedger.account_id,
                func.coalesce(func.sum(GeneralLedger.equivalent_debit_amount), 0),
                func.coalesce(func.sum(GeneralLedger.equivalent_credit_amount), 0),
            )
            .where(
                GeneralLedger.company_id == company_id,
                GeneralLedger.financial_year_id == financial_year_id,
            )
            .group_by(GeneralLedger.account_id)
        )
        if start_date:
            query = query.where(GeneralLedger.transaction_date >= start_date)
        if end_date:
            query = query.where(GeneralLedger.transaction_date <= end_date)
        rows = (await self.db.execute(query)).all()
        return {row[0]: (to_decimal(row[1]), to_decimal(row[2])) for row in rows}

    async def _collect(
        self,
        financial_year_id: uuid.UUID,
        company_id: uuid.UUID,
        user: User,
        start_date: Optional[date],
        end_date: Optional[date],
        include_zero_balances: bool,
        include_inactive: bool,
    ):
        if start_date and end_date and start_date > end_date:
            raise InvalidDateRangeException(start_date, end_date)

        year = await FinancialYearService(self.db).get_year(financial_year_id, company_id)
        totals = await self._ledger_totals(company_id, year.id, start_date, end_date)

        # Only the company's own accounts are reported
        account_query = select(Account).where(Account.company_id == company_id).order_by(Account.code)
        if not include_inactive:
            account_query = account_query.where(Account.status == AccountStatus.ACTIVE)
        accounts = list((await self.db.execute(account_query)).scalars().all())

        rows: Dict[uuid.UUID, dict] = {}
        for account in accounts:
            if account.id not in totals and not include_zero_balances:
                continue
            debit, credit = totals.get(account.id, (ZERO, ZERO))
            balance, debit_balance, credit_balance = side_balance(debit, credit)
            rows[account.id] = {
                "account_id": account.id,
                "account_code": account.code,
                "account_name": account.name,
                "account_type_id": account.account_type_id,
                "parent_id": account.parent_id,
                "nature": account.nature.value,
                "status": account.status.value,
                "total_debit": debit,
                "total_credit": credit,
                "balance": balance,
                "debit_balance": debit_balance,
                "credit_balance": credit_balance,
            }

        total_debit = sum((r["total_debit"] for r in rows.values()), ZERO)
        total_credit = sum((r["total_credit"] for r in rows.values()), ZERO)
        difference = total_debit - total_credit
        summary = {
            "total_debit": total_debit,
            "total_credit": total_credit,
            "difference": difference,
            "is_balanced": abs(difference) < CENT,
            "account_count": len(rows),
            "accounts_with_activity": sum(1 for account_id in rows if account_id in totals),
        }

        default_currency = await CurrencyService(self.db).find_default_currency(company_id)
        metadata = {
            "company_id": company_id,
            "financial_year_id": year.id,
            "financial_year_name": year.name,
            "financial_year_start": year.start_date,
            "financial_year_end": year.end_date,
            "default_currency_id": default_currency.id if default_currency else None,
            "default_currency_code": default_currency.code if default_currency else None,
            "generated_at": utcnow(),
            "generated_by": user.full_name or user.username,
            "filters": {
                "start_date": start_date,
                "end_date": end_date,
                "include_zero_balances": include_zero_balances,
                "include_inactive": include_inactive,
            },
        }
        return rows, summary, metadata

    async def generate(
        self,
        financial_year_id: uuid.UUID,
        company_id: uuid.UUID,
        user: User,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_zero_balances: bool = True,
        include_inactive: bool = False,
    ) -> dict:
        """Trial balance grouped by account type."""
        rows, summary, metadata = await self._collect(
            financial_year_id, company_id, user, start_date, end_date,
            include_zero_balances, include_inactive,
        )

        type_ids = {r["account_type_id"] for r in rows.values()}
        types = {}
        if type_ids:
            result = await self.db.execute(select(AccountType).where(AccountType.id.in_(type_ids)))
            types = {t.id: t for t in result.scalars().all()}

        groups: Dict[uuid.UUID, dict] = {}
        for row in rows.values():
            account_type = types.get(row["account_type_id"])
            group = groups.setdefault(row["account_type_id"], {
                "account_type_id": row["account_type_id"],
                "account_type_code": account_type.code if account_type else "UNKNOWN",
                "account_type_name": account_type.name if account_type else "Unknown",
                "category": account_type.category.value if account_type else "UNKNOWN",
                "accounts": [],
                "total_debit": ZERO,
                "total_credit": ZERO,
            })
            group["accounts"].append(row)
            group["total_debit"] += row["total_debit"]
            group["total_credit"] += row["total_credit"]

        for group in groups.values():
            _, group["debit_balance"], group["credit_balance"] = side_balance(
                group["total_debit"], group["total_credit"],
            )

        logger.info(
            f"Trial balance generated for company {company_id}, year {metadata['financial_year_name']}: "
            f"balanced={summary['is_balanced']}"
        )
        return {
            "metadata": metadata,
            "groups": sorted(groups.values(), key=lambda g: g["account_type_code"]),
            "summary": summary,
        }

    async def generate_hierarchical(
        self,
        financial_year_id: uuid.UUID,
        company_id: uuid.UUID,
        user: User,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_zero_balances: bool = True,
        include_inactive: bool = False,
    ) -> dict:
        """Trial balance as an account tree; a parent's totals include its children's."""
        rows, summary, metadata = await self._collect(
            financial_year_id, company_id, user, start_date, end_date,
            include_zero_balances, include_inactive,
        )

        nodes = {
            account_id: {**row, "own_debit": row["total_debit"], "own_credit": row["total_credit"], "children": []}
            for account_id, row in rows.items()
        }
        roots: List[dict] = []
        for node in nodes.values():
            parent = nodes.get(node["parent_id"]) if node["parent_id"] else None
            if parent is not None:
                parent["children"].append(node)
            else:
                roots.append(node)

        def roll_up(node: dict) -> tuple:
            debit: Decimal = node["own_debit"]
            credit: Decimal = node["own_credit"]
            for child in node["children"]:
                child_debit, child_credit = roll_up(child)
                debit += child_debit
                credit += child_credit
            node["total_debit"] = debit
            node["total_credit"] = credit
            node["balance"], node["debit_balance"], node["credit_balance"] = side_balance(debit, credit)
            return debit, credit

        for root in roots:
            roll_up(root)

        return {"metadata": metadata, "accounts": roots, "summary": summary}
