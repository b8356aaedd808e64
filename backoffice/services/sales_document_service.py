"""
POS Back Office - Sales Document Service

Behaviour shared by sales orders and sales invoices: currency and exchange
rate resolution, financial year lookup, line arithmetic and dated reference
numbers (``SO-20240315-0001``).
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.financial_year import FinancialYear
from backoffice.schemas.sales import SalesItemInput
from backoffice.services.account_service import AccountService
from backoffice.services.currency_service import CurrencyService
from backoffice.services.exchange_rate_service import ExchangeRateService
from backoffice.services.financial_year_service import FinancialYearService
from backoffice.utils.error_handling import BusinessRuleException, ValidationException
from backoffice.utils.ledger import ONE, to_decimal
from backoffice.utils.pricing import compute_line, compute_totals
from backoffice.utils.sequencing import format_dated_reference, next_sequence

logger = logging.getLogger(__name__)


class SalesDocumentService:
    """Base for the sales order and sales invoice services."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)
        self.currencies = CurrencyService(db)
        self.rates = ExchangeRateService(db)
        self.years = FinancialYearService(db)

    async def resolve_currency(
        self,
        company_id: uuid.UUID,
        currency_id: uuid.UUID,
        on_date: date,
        exchange_rate: Optional[Decimal] = None,
        exchange_rate_id: Optional[uuid.UUID] = None,
    ) -> dict:
        """
        Currency columns of a document.

        An explicit rate wins, then the referenced rate record, then 1 for the
        default currency, then the latest rate into the default currency.
        """
        currency = await self.currencies.get_currency(currency_id, company_id)
        default = await self.currencies.find_default_currency(company_id)

        rate_id = None
        if exchange_rate is not None:
            rate = to_decimal(exchange_rate)
            rate_id = exchange_rate_id
        elif exchange_rate_id is not None:
            record = await self.rates.get_rate(exchange_rate_id, company_id)
            rate, rate_id = record.rate, record.id
        elif default is None or default.id == currency.id:
            rate = ONE
        else:
            record = await self.rates.find_effective_rate(currency.id, default.id, company_id, on_date)
            if record is None:
                raise ValidationException(
                    f"No exchange rate from {currency.code} to the default currency {default.code}",
                    field="exchange_rate",
                )
            rate, rate_id = record.rate, record.id

        return {
            "currency_id": currency.id,
            "system_default_currency_id": default.id if default else None,
            "exchange_rate": rate,
            "exchange_rate_id": rate_id,
        }

    async def resolve_financial_year(self, on_date: date, company_id: uuid.UUID) -> FinancialYear:
        """The company's current, active, open financial year, which must contain ``on_date``."""
        year = await self.years.get_current(company_id)
        if year is None or not year.is_active:
            raise BusinessRuleException(
                "No active financial year found. Please set up a current financial year first.",
                rule="CURRENT_FINANCIAL_YEAR",
            )
        if year.is_closed:
            raise BusinessRuleException(
                f"Financial year '{year.name}' is closed",
                rule="FINANCIAL_YEAR_OPEN",
            )
        if not year.contains(on_date):
            raise BusinessRuleException(
                f"Date {on_date} is outside the current financial year "
                f"'{year.name}' ({year.start_date} to {year.end_date})",
                rule="DATE_IN_FINANCIAL_YEAR",
            )
        return year

    async def build_items(
        self,
        items: List[SalesItemInput],
        exchange_rate: Decimal,
        company_id: uuid.UUID,
    ) -> Tuple[List[dict], dict]:
        """Column values for each line plus the header totals."""
        if not items:
            raise ValidationException("At least one item is required", field="items")

        await self.accounts.get_accounts_map(
            (item.income_account_id for item in items if item.income_account_id), company_id,
        )

        computed = []
        rows = []
        for number, item in enumerate(items, start=1):
            amounts = compute_line(
                item.quantity,
                item.unit_price,
                discount_percentage=item.discount_percentage,
                discount_amount=item.discount_amount,
                tax_percentage=item.tax_percentage,
                tax_amount=item.tax_amount,
                wht_amount=item.wht_amount,
                exchange_rate=exchange_rate,
            )
            if amounts["discount_amount"] > amounts["subtotal"]:
                raise ValidationException(
                    f"Discount of line {number} exceeds its subtotal of {amounts['subtotal']}",
                    field=f"items.{number - 1}.discount_amount",
                )
            computed.append(amounts)
            rows.append({
                "company_id": company_id,
                "line_number": number,
                "product_id": item.product_id,
                "description": item.description,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount_percentage": item.discount_percentage,
                "discount_amount": amounts["discount_amount"],
                "tax_percentage": item.tax_percentage,
                "tax_amount": amounts["tax_amount"],
                "wht_amount": amounts["wht_amount"],
                "exchange_rate": amounts["exchange_rate"],
                "equivalent_amount": amounts["equivalent_amount"],
                "amount_after_discount": amounts["amount_after_discount"],
                "amount_after_wht": amounts["amount_after_wht"],
                "line_total": amounts["line_total"],
                "income_account_id": item.income_account_id,
                "notes": item.notes,
            })
        return rows, compute_totals(computed, exchange_rate)

    async def next_dated_reference(self, model, column, prefix: str, on_date: date, company_id: uuid.UUID) -> str:
        """
        ``{prefix}-{YYYYMMDD}-{NNNN}``. The sequence runs per company across
        dates, continuing from the most recently created document.
        """
        scope = (model.company_id == company_id, column.like(f"{prefix}-%"))
        last = (await self.db.execute(
            select(column).where(*scope).order_by(model.created_at.desc(), column.desc()).limit(1)
        )).scalar_one_or_none()
        count = (await self.db.execute(select(func.count(model.id)).where(*scope))).scalar_one()
        return format_dated_reference(prefix, on_date, next_sequence(last, count))

    @staticmethod
    def items_as_input(existing) -> List[SalesItemInput]:
        """Stored lines as inputs, for re-pricing a document whose rate changed."""
        return [
            SalesItemInput(
                product_id=line.product_id,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount_percentage=line.discount_percentage,
                discount_amount=line.discount_amount,
                tax_percentage=line.tax_percentage,
                tax_amount=line.tax_amount,
                wht_amount=line.wht_amount,
                income_account_id=line.income_account_id,
                notes=line.notes,
            )
            for line in existing
        ]

    async def apply_changes(self, document, item_model, data, date_field: str, company_id: uuid.UUID) -> None:
        """
        Apply a partial update to a draft document. Changing the date re-checks
        the financial year; changing the currency or rate re-prices every line.
        """
        pricing_keys = {"currency_id", "exchange_rate", "exchange_rate_id"}
        changes = data.model_dump(exclude_unset=True, exclude={"items"} | pricing_keys)
        on_date = changes.get(date_field) or getattr(document, date_field)
        if changes.get(date_field):
            year = await self.resolve_financial_year(on_date, company_id)
            document.financial_year_id = year.id

        items = data.items
        if pricing_keys & data.model_fields_set:
            pricing = await self.resolve_currency(
                company_id,
                data.currency_id or document.currency_id,
                on_date,
                data.exchange_rate,
                data.exchange_rate_id,
            )
            for field, value in pricing.items():
                setattr(document, field, value)
            if items is None:
                items = self.items_as_input(document.items)

        if items is not None:
            rows, totals = await self.build_items(items, document.exchange_rate, company_id)
            document.items = [item_model(**row) for row in rows]
            for field, value in totals.items():
                setattr(document, field, value)

        for field, value in changes.items():
            if value is None and field == date_field:
                continue
            setattr(document, field, value)
