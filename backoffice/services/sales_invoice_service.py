"""
POS Back Office - Sales Invoice Service

Sales invoices and their approval into the general ledger.

Approving an invoice posts one balanced SALES_INVOICE batch:

    Dr  accounts receivable     total - WHT
    Dr  WHT receivable          WHT            (when WHT > 0)
    Dr  discount allowed        discount       (when discount > 0)
        Cr  revenue             subtotal       (per income account)
        Cr  tax payable         tax            (when tax > 0)

Rejecting or cancelling an approved invoice removes that batch again.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.base import utcnow
from backoffice.models.general_ledger import LedgerTransactionType
from backoffice.models.sales import (
    PaymentStatus,
    SalesInvoice,
    SalesInvoiceItem,
    SalesInvoiceStatus,
    SalesOrder,
)
from backoffice.models.user import User
from backoffice.schemas.sales import SalesInvoiceCreate, SalesInvoiceUpdate, SalesOrderConvert
from backoffice.services.general_ledger_service import GeneralLedgerService, LedgerPosting
from backoffice.services.sales_document_service import SalesDocumentService
from backoffice.utils.error_handling import (
    BusinessRuleException,
    InvalidStatusTransitionException,
    NotFoundException,
    UnbalancedEntryException,
    ValidationException,
)
from backoffice.utils.ledger import (
    CREDIT,
    DEBIT,
    ZERO,
    equivalent_amount,
    is_balanced,
    quantize_money,
    to_decimal,
)
from backoffice.utils.sequencing import retry_on_unique_violation

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
ACCOUNT_FIELDS = (
    "account_receivable_id",
    "revenue_account_id",
    "tax_account_id",
    "wht_account_id",
    "discount_allowed_account_id",
)
APPROVABLE_STATUSES = (SalesInvoiceStatus.DRAFT, SalesInvoiceStatus.SENT, SalesInvoiceStatus.OVERDUE)
FINAL_STATUSES = (SalesInvoiceStatus.PAID, SalesInvoiceStatus.CANCELLED, SalesInvoiceStatus.REJECTED)


class SalesInvoiceService(SalesDocumentService):
    """Service for sales invoices."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)
        self.ledger = GeneralLedgerService(db)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_invoices(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        status: Optional[SalesInvoiceStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[SalesInvoice], int]:
        query = select(SalesInvoice)
        if company_id is not None:
            query = query.where(SalesInvoice.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                SalesInvoice.invoice_ref_number.ilike(pattern),
                SalesInvoice.notes.ilike(pattern),
            ))
        if status:
            query = query.where(SalesInvoice.status == status)
        if payment_status:
            query = query.where(SalesInvoice.payment_status == payment_status)
        if customer_id:
            query = query.where(SalesInvoice.customer_id == customer_id)
        if start_date:
            query = query.where(SalesInvoice.invoice_date >= start_date)
        if end_date:
            query = query.where(SalesInvoice.invoice_date <= end_date)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(SalesInvoice.invoice_date.desc(), SalesInvoice.created_at.desc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def get_invoice(self, invoice_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> SalesInvoice:
        query = select(SalesInvoice).where(SalesInvoice.id == invoice_id)
        if company_id is not None:
            query = query.where(SalesInvoice.company_id == company_id)
        invoice = (await self.db.execute(query)).scalar_one_or_none()
        if invoice is None:
            raise NotFoundException("Sales invoice", invoice_id)
        return invoice

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        query = select(
            SalesInvoice.status,
            SalesInvoice.payment_status,
            func.count(SalesInvoice.id),
            func.coalesce(func.sum(SalesInvoice.total_amount), 0),
            func.coalesce(func.sum(SalesInvoice.balance_amount), 0),
        ).group_by(SalesInvoice.status, SalesInvoice.payment_status)
        if company_id is not None:
            query = query.where(SalesInvoice.company_id == company_id)
        rows = (await self.db.execute(query)).all()

        by_status = {s.value: 0 for s in SalesInvoiceStatus}
        by_payment_status = {s.value: 0 for s in PaymentStatus}
        total_amount = total_balance = Decimal("0")
        for status, payment_status, count, amount, balance in rows:
            by_status[getattr(status, "value", status)] += count
            by_payment_status[getattr(payment_status, "value", payment_status)] += count
            total_amount += to_decimal(amount)
            total_balance += to_decimal(balance)
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_payment_status": by_payment_status,
            "total_amount": total_amount,
            "total_balance": total_balance,
        }

    # =========================================================================
    # CREATE / UPDATE / DELETE
    # =========================================================================

    async def _check_accounts(self, values: dict, company_id: uuid.UUID) -> None:
        await self.accounts.get_accounts_map(
            (values[field] for field in ACCOUNT_FIELDS if values.get(field)), company_id,
        )

    async def _insert(self, company_id: uuid.UUID, invoice_date: date, build) -> SalesInvoice:
        """Number and insert an invoice built by ``build(reference)``."""

        async def insert() -> SalesInvoice:
            reference = await self.next_dated_reference(
                SalesInvoice, SalesInvoice.invoice_ref_number, INVOICE_PREFIX, invoice_date, company_id,
            )
            invoice = build(reference)
            self.db.add(invoice)
            await self.db.flush()
            return invoice

        return await retry_on_unique_violation(
            self.db, insert, "sales invoice", attempts=settings.reference_max_retries,
        )

    async def create_invoice(self, data: SalesInvoiceCreate, company_id: uuid.UUID, user: User) -> SalesInvoice:
        year = await self.resolve_financial_year(data.invoice_date, company_id)
        pricing = await self.resolve_currency(
            company_id, data.currency_id, data.invoice_date, data.exchange_rate, data.exchange_rate_id,
        )
        rows, totals = await self.build_items(data.items, pricing["exchange_rate"], company_id)
        if data.due_date and data.due_date < data.invoice_date:
            raise ValidationException("due_date cannot be before the invoice date", field="due_date")
        header = data.model_dump(exclude={"items", "currency_id", "exchange_rate", "exchange_rate_id"})
        await self._check_accounts(header, company_id)
        if data.sales_order_id:
            order = (await self.db.execute(
                select(SalesOrder.id).where(
                    SalesOrder.id == data.sales_order_id, SalesOrder.company_id == company_id,
                )
            )).scalar_one_or_none()
            if order is None:
                raise NotFoundException("Sales order", data.sales_order_id)

        invoice = await self._insert(company_id, data.invoice_date, lambda reference: SalesInvoice(
            **header,
            **pricing,
            **totals,
            company_id=company_id,
            financial_year_id=year.id,
            invoice_ref_number=reference,
            status=SalesInvoiceStatus.DRAFT,
            payment_status=PaymentStatus.UNPAID,
            paid_amount=ZERO,
            balance_amount=totals["total_amount"],
            created_by_id=user.id,
            updated_by_id=user.id,
            items=[SalesInvoiceItem(**row) for row in rows],
        ))
        logger.info(f"Sales invoice {invoice.invoice_ref_number} created by {user.username}")
        return invoice

    async def create_from_order(
        self,
        order: SalesOrder,
        data: SalesOrderConvert,
        company_id: uuid.UUID,
        user: User,
    ) -> SalesInvoice:
        """Invoice copying an order's pricing and lines."""
        invoice_date = data.invoice_date or date.today()
        if data.due_date and data.due_date < invoice_date:
            raise ValidationException("due_date cannot be before the invoice date", field="due_date")
        year = await self.resolve_financial_year(invoice_date, company_id)
        accounts = data.model_dump(include=set(ACCOUNT_FIELDS))
        await self._check_accounts(accounts, company_id)

        copied_columns = (
            "store_id", "customer_id", "currency_id", "system_default_currency_id", "exchange_rate_id",
            "exchange_rate", "subtotal", "tax_amount", "discount_amount", "total_amount",
            "amount_after_discount", "total_wht_amount", "amount_after_wht", "equivalent_amount",
            "delivery_date", "shipping_address", "notes", "terms_conditions",
        )
        line_columns = (
            "line_number", "product_id", "description", "quantity", "unit_price", "discount_percentage",
            "discount_amount", "tax_percentage", "tax_amount", "wht_amount", "exchange_rate",
            "equivalent_amount", "amount_after_discount", "amount_after_wht", "line_total",
            "income_account_id", "notes",
        )

        def build(reference: str) -> SalesInvoice:
            return SalesInvoice(
                **{column: getattr(order, column) for column in copied_columns},
                **accounts,
                company_id=company_id,
                financial_year_id=year.id,
                sales_order_id=order.id,
                invoice_ref_number=reference,
                invoice_date=invoice_date,
                due_date=data.due_date,
                status=SalesInvoiceStatus.DRAFT,
                payment_status=PaymentStatus.UNPAID,
                paid_amount=ZERO,
                balance_amount=order.total_amount,
                created_by_id=user.id,
                updated_by_id=user.id,
                items=[
                    SalesInvoiceItem(company_id=company_id, **{c: getattr(line, c) for c in line_columns})
                    for line in order.items
                ],
            )

        return await self._insert(company_id, invoice_date, build)

    def _require_status(self, invoice: SalesInvoice, action: str, *allowed: SalesInvoiceStatus) -> None:
        if invoice.status not in allowed:
            raise InvalidStatusTransitionException(
                "sales invoice", invoice.status.value, action, [s.value for s in allowed],
            )

    async def update_invoice(
        self, invoice_id: uuid.UUID, data: SalesInvoiceUpdate, company_id: uuid.UUID, user: User,
    ) -> SalesInvoice:
        invoice = await self.get_invoice(invoice_id, company_id)
        self._require_status(invoice, "update", SalesInvoiceStatus.DRAFT)
        await self._check_accounts(data.model_dump(include=set(ACCOUNT_FIELDS)), company_id)
        await self.apply_changes(invoice, SalesInvoiceItem, data, "invoice_date", company_id)
        if invoice.due_date and invoice.due_date < invoice.invoice_date:
            raise ValidationException("due_date cannot be before the invoice date", field="due_date")
        invoice.balance_amount = invoice.total_amount - invoice.paid_amount
        invoice.updated_by_id = user.id
        await self.db.flush()
        return invoice

    async def delete_invoice(self, invoice_id: uuid.UUID, company_id: uuid.UUID) -> None:
        invoice = await self.get_invoice(invoice_id, company_id)
        self._require_status(invoice, "delete", SalesInvoiceStatus.DRAFT)
        await self.db.delete(invoice)
        await self.db.flush()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def send_invoice(self, invoice_id: uuid.UUID, company_id: uuid.UUID, user: User) -> SalesInvoice:
        invoice = await self.get_invoice(invoice_id, company_id)
        self._require_status(invoice, "send", SalesInvoiceStatus.DRAFT)
        invoice.status = SalesInvoiceStatus.SENT
        invoice.sent_by_id = user.id
        invoice.sent_at = utcnow()
        invoice.updated_by_id = user.id
        await self.db.flush()
        return invoice

    def _revenue_by_account(self, invoice: SalesInvoice) -> Dict[uuid.UUID, Decimal]:
        revenue: Dict[uuid.UUID, Decimal] = OrderedDict()
        for item in invoice.items:
            account_id = item.income_account_id or invoice.revenue_account_id
            amount = quantize_money(to_decimal(item.quantity) * to_decimal(item.unit_price))
            revenue[account_id] = revenue.get(account_id, ZERO) + amount
        return revenue

    def ledger_lines(self, invoice: SalesInvoice) -> List[Tuple[uuid.UUID, str, Decimal, str]]:
        """``(account_id, side, original amount, description)`` of the approval batch."""
        if not invoice.account_receivable_id:
            raise BusinessRuleException(
                "An accounts receivable account is required to approve the invoice",
                rule="RECEIVABLE_ACCOUNT_REQUIRED",
                field="account_receivable_id",
            )
        if not invoice.revenue_account_id:
            raise BusinessRuleException(
                "A revenue account is required to approve the invoice",
                rule="REVENUE_ACCOUNT_REQUIRED",
                field="revenue_account_id",
            )

        total = to_decimal(invoice.total_amount)
        wht = to_decimal(invoice.total_wht_amount)
        discount = to_decimal(invoice.discount_amount)
        tax = to_decimal(invoice.tax_amount)
        reference = invoice.invoice_ref_number

        optional = (
            (wht, "wht_account_id", DEBIT, "Withholding tax"),
            (discount, "discount_allowed_account_id", DEBIT, "Discount allowed"),
            (tax, "tax_account_id", CREDIT, "Tax payable"),
        )
        for amount, field, _, label in optional:
            if amount > ZERO and not getattr(invoice, field):
                raise BusinessRuleException(
                    f"{label} account is required when the invoice carries {label.lower()}",
                    rule="POSTING_ACCOUNT_REQUIRED",
                    field=field,
                )

        lines = [(invoice.account_receivable_id, DEBIT, total - wht, f"Receivable for {reference}")]
        for amount, field, side, label in optional[:2]:
            if amount > ZERO:
                lines.append((getattr(invoice, field), side, amount, f"{label} on {reference}"))
        for account_id, amount in self._revenue_by_account(invoice).items():
            lines.append((account_id, CREDIT, amount, f"Revenue from {reference}"))
        if tax > ZERO:
            lines.append((invoice.tax_account_id, CREDIT, tax, f"Tax payable on {reference}"))
        return lines

    async def approve_invoice(self, invoice_id: uuid.UUID, company_id: uuid.UUID, user: User) -> SalesInvoice:
        invoice = await self.get_invoice(invoice_id, company_id)
        self._require_status(invoice, "approve", *APPROVABLE_STATUSES)
        if not invoice.items:
            raise BusinessRuleException("Sales invoice has no items to approve")

        lines = self.ledger_lines(invoice)
        rate = to_decimal(invoice.exchange_rate)
        debit = sum((equivalent_amount(amount, rate) for _, side, amount, _ in lines if side == DEBIT), ZERO)
        credit = sum((equivalent_amount(amount, rate) for _, side, amount, _ in lines if side == CREDIT), ZERO)
        if not is_balanced(debit, credit, settings.balance_tolerance):
            raise UnbalancedEntryException(
                quantize_money(debit), quantize_money(credit),
                message=f"Sales invoice {invoice.invoice_ref_number} does not produce a balanced posting",
            )

        financial_year = await self.years.require_open_year(invoice.financial_year_id, company_id)
        system_currency_id = invoice.system_default_currency_id
        if system_currency_id is None:
            default_currency = await self.currencies.find_default_currency(company_id)
            if default_currency is None:
                raise BusinessRuleException(
                    "A default currency must be configured before posting",
                    rule="DEFAULT_CURRENCY_REQUIRED",
                )
            system_currency_id = default_currency.id

        accounts = await self.accounts.get_accounts_map((line[0] for line in lines), company_id)
        account_types = await self.accounts.get_account_types_map(a.account_type_id for a in accounts.values())
        posting = LedgerPosting(
            company_id=company_id,
            financial_year=financial_year,
            reference_number=invoice.invoice_ref_number,
            transaction_type=LedgerTransactionType.SALES_INVOICE,
            transaction_date=invoice.invoice_date,
            user=user,
            system_currency_id=system_currency_id,
            description=invoice.notes,
        )
        rows = []
        for account_id, side, amount, description in lines:
            account = accounts[account_id]
            rows.append(self.ledger.build_row(
                posting,
                account,
                account_types.get(account.account_type_id),
                side,
                amount,
                exchange_rate=rate,
                description=description,
            ))
        await self.ledger.post_rows(posting, rows)

        invoice.status = SalesInvoiceStatus.APPROVED
        invoice.approved_by_id = user.id
        invoice.approved_at = utcnow()
        invoice.updated_by_id = user.id
        await self.db.flush()
        logger.info(f"Sales invoice {invoice.invoice_ref_number} approved by {user.username}")
        return invoice

    async def _reverse_posting(self, invoice: SalesInvoice, company_id: uuid.UUID) -> None:
        if invoice.status != SalesInvoiceStatus.APPROVED:
            return
        await self.years.require_open_year(invoice.financial_year_id, company_id)
        await self.ledger.delete_by_reference(
            invoice.invoice_ref_number, LedgerTransactionType.SALES_INVOICE, company_id,
        )

    def _require_reason(self, reason: Optional[str], label: str) -> str:
        if not reason or not reason.strip():
            raise ValidationException(f"A {label} reason is required", field="reason")
        return reason.strip()

    async def reject_invoice(
        self, invoice_id: uuid.UUID, reason: str, company_id: uuid.UUID, user: User,
    ) -> SalesInvoice:
        reason = self._require_reason(reason, "rejection")
        invoice = await self.get_invoice(invoice_id, company_id)
        if invoice.status in FINAL_STATUSES:
            raise InvalidStatusTransitionException(
                "sales invoice", invoice.status.value, "reject",
                [s.value for s in SalesInvoiceStatus if s not in FINAL_STATUSES],
            )
        await self._reverse_posting(invoice, company_id)
        invoice.status = SalesInvoiceStatus.REJECTED
        invoice.rejected_by_id = user.id
        invoice.rejected_at = utcnow()
        invoice.rejection_reason = reason
        invoice.updated_by_id = user.id
        await self.db.flush()
        return invoice

    async def cancel_invoice(
        self, invoice_id: uuid.UUID, reason: str, company_id: uuid.UUID, user: User,
    ) -> SalesInvoice:
        reason = self._require_reason(reason, "cancellation")
        invoice = await self.get_invoice(invoice_id, company_id)
        if invoice.status in FINAL_STATUSES:
            raise InvalidStatusTransitionException(
                "sales invoice", invoice.status.value, "cancel",
                [s.value for s in SalesInvoiceStatus if s not in FINAL_STATUSES],
            )
        await self._reverse_posting(invoice, company_id)
        invoice.status = SalesInvoiceStatus.CANCELLED
        invoice.cancelled_by_id = user.id
        invoice.cancelled_at = utcnow()
        invoice.cancellation_reason = reason
        invoice.updated_by_id = user.id
        await self.db.flush()
        logger.info(f"Sales invoice {invoice.invoice_ref_number} cancelled by {user.username}")
        return invoice
