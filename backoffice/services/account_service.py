"""
POS Back Office - Chart of Accounts Service

Account types and accounts. An account takes its category from its type and
its nature (normal balance side) from its parent, or from its type when it
has no parent. Account codes are generated and never change.
"""

import logging
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.account import Account, AccountStatus, AccountType
from backoffice.models.general_ledger import GeneralLedger
from backoffice.models.journal_entry import JournalEntryLine
from backoffice.schemas.account import (
    AccountCreate,
    AccountTypeCreate,
    AccountTypeUpdate,
    AccountUpdate,
)
from backoffice.services.auto_code_service import AutoCodeService
from backoffice.utils.error_handling import (
    BusinessRuleException,
    DuplicateEntryException,
    NotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Service for account types and the chart of accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # ACCOUNT TYPES
    # =========================================================================

    async def list_account_types(
        self, company_id: Optional[uuid.UUID], is_active: Optional[bool] = None,
    ) -> List[AccountType]:
        query = select(AccountType).order_by(AccountType.code)
        if company_id is not None:
            query = query.where(AccountType.company_id == company_id)
        if is_active is not None:
            query = query.where(AccountType.is_active == is_active)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_account_type(self, type_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> AccountType:
        query = select(AccountType).where(AccountType.id == type_id)
        if company_id is not None:
            query = query.where(AccountType.company_id == company_id)
        account_type = (await self.db.execute(query)).scalar_one_or_none()
        if account_type is None:
            raise NotFoundException("Account type", type_id)
        return account_type

    async def create_account_type(
        self, data: AccountTypeCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> AccountType:
        duplicate = await self.db.execute(
            select(AccountType.id).where(
                AccountType.company_id == company_id,
                func.lower(AccountType.name) == data.name.strip().lower(),
            )
        )
        if duplicate.first() is not None:
            raise DuplicateEntryException("Account type", "name", data.name)

        code = data.code.strip().upper() if data.code else None
        if code:
            taken = await self.db.execute(
                select(AccountType.id).where(AccountType.company_id == company_id, AccountType.code == code)
            )
            if taken.first() is not None:
                raise DuplicateEntryException("Account type", "code", code)
        else:
            code = await AutoCodeService(self.db).next_code("account_types", company_id)

        account_type = AccountType(
            company_id=company_id,
            name=data.name.strip(),
            code=code,
            category=data.category,
            nature=data.nature,
            description=data.description,
            is_active=data.is_active,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(account_type)
        await self.db.flush()
        return account_type

    async def update_account_type(
        self,
        type_id: uuid.UUID,
        data: AccountTypeUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> AccountType:
        account_type = await self.get_account_type(type_id, company_id)
        changes = data.changed_fields("description")
        if "name" in changes:
            duplicate = await self.db.execute(
                select(AccountType.id).where(
                    AccountType.company_id == company_id,
                    func.lower(AccountType.name) == changes["name"].strip().lower(),
                    AccountType.id != account_type.id,
                )
            )
            if duplicate.first() is not None:
                raise DuplicateEntryException("Account type", "name", changes["name"])
        for field, value in changes.items():
            setattr(account_type, field, value)
        account_type.updated_by_id = user_id
        await self.db.flush()
        return account_type

    async def delete_account_type(self, type_id: uuid.UUID, company_id: uuid.UUID) -> None:
        account_type = await self.get_account_type(type_id, company_id)
        in_use = await self.db.execute(
            select(Account.id).where(Account.account_type_id == account_type.id).limit(1)
        )
        if in_use.first() is not None:
            raise BusinessRuleException("Cannot delete an account type that still has accounts")
        await self.db.delete(account_type)
        await self.db.flush()

    # =========================================================================
    # ACCOUNT QUERIES
    # =========================================================================

    async def list_accounts(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        account_type_id: Optional[uuid.UUID] = None,
        status: Optional[AccountStatus] = None,
    ) -> Tuple[List[Account], int]:
        query = select(Account)
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Account.name.ilike(pattern),
                Account.code.ilike(pattern),
                Account.description.ilike(pattern),
            ))
        if account_type_id:
            query = query.where(Account.account_type_id == account_type_id)
        if status:
            query = query.where(Account.status == status)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(Account.code).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_active_accounts(self, company_id: Optional[uuid.UUID]) -> List[Account]:
        query = select(Account).where(Account.status == AccountStatus.ACTIVE).order_by(Account.code)
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_leaf_accounts(self, company_id: Optional[uuid.UUID]) -> List[Account]:
        """Active accounts that have no active children; the ones lines may post to."""
        accounts = await self.list_active_accounts(company_id)
        parents = {a.parent_id for a in accounts if a.parent_id is not None}
        return [a for a in accounts if a.id not in parents]

    async def get_account(self, account_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> Account:
        query = select(Account).where(Account.id == account_id)
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        account = (await self.db.execute(query)).scalar_one_or_none()
        if account is None:
            raise NotFoundException("Account", account_id)
        return account

    async def get_accounts_map(
        self, account_ids: Iterable[uuid.UUID], company_id: uuid.UUID,
    ) -> Dict[uuid.UUID, Account]:
        """
        Load the given accounts, all of which must belong to the company.

        Raises ValidationException naming the first foreign or missing id.
        """
        ids = set(account_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Account).where(Account.id.in_(ids), Account.company_id == company_id)
        )
        accounts = {a.id: a for a in result.scalars().all()}
        missing = ids - accounts.keys()
        if missing:
            raise ValidationException(
                f"Account {sorted(str(m) for m in missing)[0]} does not exist or does not belong to your company",
                field="account_id",
            )
        return accounts

    async def get_account_types_map(
        self, type_ids: Iterable[uuid.UUID],
    ) -> Dict[uuid.UUID, AccountType]:
        ids = set(type_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(AccountType).where(AccountType.id.in_(ids)))
        return {t.id: t for t in result.scalars().all()}

    async def get_tree(self, company_id: Optional[uuid.UUID]) -> List[dict]:
        """Accounts nested under their parents, grouped by account type."""
        types = await self.list_account_types(company_id)
        query = select(Account).order_by(Account.code)
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        accounts = list((await self.db.execute(query)).scalars().all())

        nodes = {
            a.id: {
                "id": a.id,
                "name": a.name,
                "code": a.code,
                "nature": a.nature,
                "status": a.status,
                "parent_id": a.parent_id,
                "children": [],
            }
            for a in accounts
        }
        roots_by_type: Dict[uuid.UUID, List[dict]] = defaultdict(list)
        for account in accounts:
            node = nodes[account.id]
            if account.parent_id and account.parent_id in nodes:
                nodes[account.parent_id]["children"].append(node)
            else:
                roots_by_type[account.account_type_id].append(node)

        return [
            {
                "account_type_id": t.id,
                "account_type_name": t.name,
                "account_type_code": t.code,
                "category": t.category,
                "accounts": roots_by_type.get(t.id, []),
            }
            for t in types
        ]

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        query = select(Account.type, Account.status, func.count(Account.id)).group_by(Account.type, Account.status)
        if company_id is not None:
            query = query.where(Account.company_id == company_id)
        rows = (await self.db.execute(query)).all()

        by_type: Dict[str, int] = defaultdict(int)
        active = inactive = 0
        for category, status, count in rows:
            by_type[getattr(category, "value", category)] += count
            if status == AccountStatus.ACTIVE:
                active += count
            else:
                inactive += count
        return {
            "total": active + inactive,
            "active": active,
            "inactive": inactive,
            "by_type": dict(by_type),
        }

    # =========================================================================
    # ACCOUNT MUTATIONS
    # =========================================================================

    async def _is_descendant(self, candidate_id: uuid.UUID, account_id: uuid.UUID, company_id: uuid.UUID) -> bool:
        """True when ``candidate_id`` sits somewhere below ``account_id``."""
        rows = (await self.db.execute(
            select(Account.id, Account.parent_id).where(Account.company_id == company_id)
        )).all()
        parent_of = {row.id: row.parent_id for row in rows}
        current = parent_of.get(candidate_id)
        seen = set()
        while current is not None and current not in seen:
            if current == account_id:
                return True
            seen.add(current)
            current = parent_of.get(current)
        return False

    async def create_account(
        self, data: AccountCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> Account:
        account_type = await self.get_account_type(data.account_type_id, company_id)
        parent = None
        if data.parent_id:
            parent = await self.get_account(data.parent_id, company_id)

        code = await AutoCodeService(self.db).next_code("accounts", company_id)
        account = Account(
            company_id=company_id,
            name=data.name.strip(),
            code=code,
            type=account_type.category,
            nature=parent.nature if parent else account_type.nature,
            account_type_id=account_type.id,
            parent_id=parent.id if parent else None,
            description=data.description,
            status=data.status,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(account)
        await self.db.flush()
        logger.info(f"Account {account.code} created for company {company_id}")
        return account

    async def update_account(
        self,
        account_id: uuid.UUID,
        data: AccountUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Account:
        account = await self.get_account(account_id, company_id)
        changes = data.changed_fields("parent_id", "description")

        code = changes.pop("code", None)
        if code is not None and code != account.code:
            raise BusinessRuleException("Account code cannot be changed", rule="IMMUTABLE_CODE", field="code")

        account_type = None
        if changes.get("account_type_id"):
            account_type = await self.get_account_type(changes["account_type_id"], company_id)
            account.account_type_id = account_type.id
            account.type = account_type.category
        changes.pop("account_type_id", None)

        if "parent_id" in changes:
            parent_id = changes.pop("parent_id")
            if parent_id is not None:
                if parent_id == account.id:
                    raise ValidationException("An account cannot be its own parent", field="parent_id")
                parent = await self.get_account(parent_id, company_id)
                if await self._is_descendant(parent.id, account.id, company_id):
                    raise ValidationException(
                        "An account cannot be moved under one of its own descendants",
                        field="parent_id",
                    )
                account.parent_id = parent.id
                account.nature = parent.nature
            else:
                account.parent_id = None
                account_type = account_type or await self.get_account_type(account.account_type_id, company_id)
                account.nature = account_type.nature
        elif account_type is not None and account.parent_id is None:
            account.nature = account_type.nature

        for field, value in changes.items():
            setattr(account, field, value)
        account.updated_by_id = user_id
        await self.db.flush()
        return account

    async def delete_account(self, account_id: uuid.UUID, company_id: uuid.UUID) -> None:
        account = await self.get_account(account_id, company_id)
        has_children = (await self.db.execute(
            select(Account.id).where(Account.parent_id == account.id).limit(1)
        )).first() is not None
        if has_children:
            raise BusinessRuleException("Cannot delete an account that has child accounts")

        has_postings = (await self.db.execute(
            select(GeneralLedger.id).where(GeneralLedger.account_id == account.id).limit(1)
        )).first() is not None
        has_lines = (await self.db.execute(
            select(JournalEntryLine.id).where(JournalEntryLine.account_id == account.id).limit(1)
        )).first() is not None
        if has_postings or has_lines:
            raise BusinessRuleException("Cannot delete an account that has transactions")

        await self.db.delete(account)
        await self.db.flush()
