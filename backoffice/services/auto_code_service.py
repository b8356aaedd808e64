"""
POS Back Office - Auto Code Service

Generates master-data codes per company. A module either has an active
AutoCode configuration (format, prefix, running counter) or falls back to
scanning the codes already in use and continuing after the highest one.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.account import Account, AccountType
from backoffice.models.auto_code import AutoCode, AutoCodeStatus
from backoffice.models.bank_detail import BankDetail
from backoffice.models.base import utcnow
from backoffice.models.company import Company
from backoffice.models.currency import Currency
from backoffice.models.product import ProductColor, ProductModel
from backoffice.schemas.auto_code import AutoCodeCreate, AutoCodeUpdate
from backoffice.utils.error_handling import DuplicateEntryException, NotFoundException
from backoffice.utils.sequencing import company_code_for, parse_trailing_number, render_code_format

logger = logging.getLogger(__name__)

COMPANY_FORMAT = "{COMPANY_CODE}-{PREFIX}-{NUMBER}"
PLAIN_FORMAT = "{PREFIX}-{NUMBER}"
FALLBACK_PADDING = 4


@dataclass(frozen=True)
class ModuleCodeDefault:
    display_name: str
    prefix: str
    format: str
    model: Type


MODULE_DEFAULTS = {
    "accounts": ModuleCodeDefault("Accounts", "ACC", COMPANY_FORMAT, Account),
    "account_types": ModuleCodeDefault("Account Types", "AT", COMPANY_FORMAT, AccountType),
    "currencies": ModuleCodeDefault("Currencies", "CUR", COMPANY_FORMAT, Currency),
    "bank_details": ModuleCodeDefault("Bank Details", "BANK", COMPANY_FORMAT, BankDetail),
    "product_colors": ModuleCodeDefault("Product Colors", "COL", PLAIN_FORMAT, ProductColor),
    "product_models": ModuleCodeDefault("Product Models", "PMD", COMPANY_FORMAT, ProductModel),
}


class AutoCodeService:
    """Service for code configuration and generation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # CODE GENERATION
    # =========================================================================

    async def get_company_code(self, company_id: uuid.UUID) -> str:
        company = await self.db.get(Company, company_id)
        if company is None:
            return settings.default_company_code
        return company_code_for(company.code, company.name, settings.default_company_code)

    async def _code_exists(self, model: Type, company_id: uuid.UUID, code: str) -> bool:
        result = await self.db.execute(
            select(model.id).where(model.company_id == company_id, model.code == code).limit(1)
        )
        return result.first() is not None

    async def _active_config(self, module_name: str, company_id: uuid.UUID) -> Optional[AutoCode]:
        result = await self.db.execute(
            select(AutoCode).where(
                AutoCode.module_name == module_name,
                AutoCode.company_id == company_id,
                AutoCode.status == AutoCodeStatus.ACTIVE,
            )
        )
        return result.scalar_one_or_none()

    async def _highest_number(self, model: Type, company_id: uuid.UUID, prefix: str) -> int:
        result = await self.db.execute(
            select(model.code).where(
                model.company_id == company_id,
                model.code.ilike(f"%{prefix}%"),
            )
        )
        highest = 0
        for code in result.scalars():
            number = parse_trailing_number(code)
            if number is not None and number > highest:
                highest = number
        return highest

    async def generate_next_code(
        self,
        module_name: str,
        company_id: uuid.UUID,
        consume: bool = True,
        on_date: Optional[date] = None,
    ) -> Tuple[str, bool]:
        """
        Next code for ``module_name``.

        Returns ``(code, configured)``. With ``consume`` False nothing is
        written, which makes the call a preview.
        """
        defaults = MODULE_DEFAULTS.get(module_name)
        if defaults is None:
            raise NotFoundException("Code module", module_name)

        company_code = await self.get_company_code(company_id)
        config = await self._active_config(module_name, company_id)

        if config is not None:
            number = config.next_number
            code = render_code_format(
                config.format, config.prefix, number, config.number_padding, company_code, on_date,
            )
            while await self._code_exists(defaults.model, company_id, code):
                number += 1
                code = render_code_format(
                    config.format, config.prefix, number, config.number_padding, company_code, on_date,
                )
            if consume:
                config.next_number = number + 1
                config.last_used = utcnow()
                await self.db.flush()
            return code, True

        number = await self._highest_number(defaults.model, company_id, defaults.prefix) + 1
        code = render_code_format(
            defaults.format, defaults.prefix, number, FALLBACK_PADDING, company_code, on_date,
        )
        while await self._code_exists(defaults.model, company_id, code):
            number += 1
            code = render_code_format(
                defaults.format, defaults.prefix, number, FALLBACK_PADDING, company_code, on_date,
            )
        return code, False

    async def next_code(self, module_name: str, company_id: uuid.UUID) -> str:
        code, _ = await self.generate_next_code(module_name, company_id)
        logger.debug(f"Generated {module_name} code {code}")
        return code

    # =========================================================================
    # CONFIGURATION CRUD
    # =========================================================================

    async def list_auto_codes(self, company_id: Optional[uuid.UUID]) -> List[AutoCode]:
        query = select(AutoCode).order_by(AutoCode.module_name)
        if company_id is not None:
            query = query.where(AutoCode.company_id == company_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_auto_code(self, auto_code_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> AutoCode:
        query = select(AutoCode).where(AutoCode.id == auto_code_id)
        if company_id is not None:
            query = query.where(AutoCode.company_id == company_id)
        result = await self.db.execute(query)
        auto_code = result.scalar_one_or_none()
        if auto_code is None:
            raise NotFoundException("Auto code", auto_code_id)
        return auto_code

    async def create_auto_code(
        self, data: AutoCodeCreate, company_id: uuid.UUID, user_id: uuid.UUID,
    ) -> AutoCode:
        existing = await self.db.execute(
            select(AutoCode.id).where(
                AutoCode.module_name == data.module_name,
                AutoCode.company_id == company_id,
            )
        )
        if existing.first() is not None:
            raise DuplicateEntryException("Auto code", "module_name", data.module_name)

        auto_code = AutoCode(
            **data.model_dump(),
            company_id=company_id,
            created_by_id=user_id,
            updated_by_id=user_id,
        )
        self.db.add(auto_code)
        await self.db.flush()
        return auto_code

    async def update_auto_code(
        self,
        auto_code_id: uuid.UUID,
        data: AutoCodeUpdate,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> AutoCode:
        auto_code = await self.get_auto_code(auto_code_id, company_id)
        for field, value in data.changed_fields("description").items():
            setattr(auto_code, field, value)
        auto_code.updated_by_id = user_id
        await self.db.flush()
        return auto_code

    async def delete_auto_code(self, auto_code_id: uuid.UUID, company_id: uuid.UUID) -> None:
        auto_code = await self.get_auto_code(auto_code_id, company_id)
        await self.db.delete(auto_code)
        await self.db.flush()

    async def available_modules(self, company_id: uuid.UUID) -> List[dict]:
        configured = {a.module_name for a in await self.list_auto_codes(company_id)}
        return [
            {
                "module_name": name,
                "display_name": default.display_name,
                "default_prefix": default.prefix,
                "default_format": default.format,
                "configured": name in configured,
            }
            for name, default in MODULE_DEFAULTS.items()
        ]
