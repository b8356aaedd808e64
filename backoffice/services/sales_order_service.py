"""
POS Back Office - Sales Order Service

Sales orders (quotations) and their lifecycle:

    draft -> sent -> accepted -> delivered
                  -> rejected
    draft/sent -> expired -> draft (reopen)

Sent, accepted and delivered orders can be converted once into a sales invoice.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.models.base import utcnow
from backoffice.models.sales import SalesInvoice, SalesOrder, SalesOrderItem, SalesOrderStatus
from backoffice.models.user import User
from backoffice.schemas.sales import SalesOrderConvert, SalesOrderCreate, SalesOrderUpdate
from backoffice.services.sales_document_service import SalesDocumentService
from backoffice.services.sales_invoice_service import SalesInvoiceService
from backoffice.utils.error_handling import (
    BusinessRuleException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from backoffice.utils.ledger import to_decimal
from backoffice.utils.sequencing import retry_on_unique_violation

logger = logging.getLogger(__name__)

ORDER_PREFIX = "SO"
CONVERTIBLE_STATUSES = (SalesOrderStatus.SENT, SalesOrderStatus.ACCEPTED, SalesOrderStatus.DELIVERED)


class SalesOrderService(SalesDocumentService):
    """Service for sales orders."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_orders(
        self,
        company_id: Optional[uuid.UUID],
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        status: Optional[SalesOrderStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[SalesOrder], int]:
        query = select(SalesOrder)
        if company_id is not None:
            query = query.where(SalesOrder.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                SalesOrder.sales_order_ref_number.ilike(pattern),
                SalesOrder.notes.ilike(pattern),
            ))
        if status:
            query = query.where(SalesOrder.status == status)
        if customer_id:
            query = query.where(SalesOrder.customer_id == customer_id)
        if start_date:
            query = query.where(SalesOrder.sales_order_date >= start_date)
        if end_date:
            query = query.where(SalesOrder.sales_order_date <= end_date)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar_one()
        query = query.order_by(SalesOrder.sales_order_date.desc(), SalesOrder.created_at.desc())
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def get_order(self, order_id: uuid.UUID, company_id: Optional[uuid.UUID]) -> SalesOrder:
        query = select(SalesOrder).where(SalesOrder.id == order_id)
        if company_id is not None:
            query = query.where(SalesOrder.company_id == company_id)
        order = (await self.db.execute(query)).scalar_one_or_none()
        if order is None:
            raise NotFoundException("Sales order", order_id)
        return order

    async def get_stats(self, company_id: Optional[uuid.UUID]) -> dict:
        query = select(
            SalesOrder.status, func.count(SalesOrder.id), func.coalesce(func.sum(SalesOrder.total_amount), 0),
        ).group_by(SalesOrder.status)
        if company_id is not None:
            query = query.where(SalesOrder.company_id == company_id)
        rows = (await self.db.execute(query)).all()

        by_status = {s.value: 0 for s in SalesOrderStatus}
        total_amount = Decimal("0")
        for status, count, amount in rows:
            by_status[getattr(status, "value", status)] = count
            total_amount += to_decimal(amount)
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "total_amount": total_amount,
        }

    # =========================================================================
    # CREATE / UPDATE / DELETE
    # =========================================================================

    async def create_order(self, data: SalesOrderCreate, company_id: uuid.UUID, user: User) -> SalesOrder:
        year = await self.resolve_financial_year(data.sales_order_date, company_id)
        pricing = await self.resolve_currency(
            company_id, data.currency_id, data.sales_order_date, data.exchange_rate, data.exchange_rate_id,
        )
        rows, totals = await self.build_items(data.items, pricing["exchange_rate"], company_id)
        if data.valid_until and data.valid_until < data.sales_order_date:
            raise ValidationException("valid_until cannot be before the order date", field="valid_until")

        header = data.model_dump(
            exclude={"items", "currency_id", "exchange_rate", "exchange_rate_id"},
        )

        async def insert() -> SalesOrder:
            order = SalesOrder(
                **header,
                **pricing,
                **totals,
                company_id=company_id,
                financial_year_id=year.id,
                sales_order_ref_number=await self.next_dated_reference(
                    SalesOrder, SalesOrder.sales_order_ref_number, ORDER_PREFIX,
                    data.sales_order_date, company_id,
                ),
                status=SalesOrderStatus.DRAFT,
                is_converted=False,
                created_by_id=user.id,
                updated_by_id=user.id,
                items=[SalesOrderItem(**row) for row in rows],
            )
            self.db.add(order)
            await self.db.flush()
            return order

        order = await retry_on_unique_violation(
            self.db, insert, "sales order", attempts=settings.reference_max_retries,
        )
        logger.info(f"Sales order {order.sales_order_ref_number} created by {user.username}")
        return order

    def _require_status(self, order: SalesOrder, action: str, *allowed: SalesOrderStatus) -> None:
        if order.status not in allowed:
            raise InvalidStatusTransitionException(
                "sales order", order.status.value, action, [s.value for s in allowed],
            )

    async def update_order(
        self, order_id: uuid.UUID, data: SalesOrderUpdate, company_id: uuid.UUID, user: User,
    ) -> SalesOrder:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "update", SalesOrderStatus.DRAFT)
        await self.apply_changes(order, SalesOrderItem, data, "sales_order_date", company_id)
        if order.valid_until and order.valid_until < order.sales_order_date:
            raise ValidationException("valid_until cannot be before the order date", field="valid_until")
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def delete_order(self, order_id: uuid.UUID, company_id: uuid.UUID) -> None:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "delete", SalesOrderStatus.DRAFT)
        await self.db.delete(order)
        await self.db.flush()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def send_order(self, order_id: uuid.UUID, company_id: uuid.UUID, user: User) -> SalesOrder:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "send", SalesOrderStatus.DRAFT)
        order.status = SalesOrderStatus.SENT
        order.sent_by_id = user.id
        order.sent_at = utcnow()
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def accept_order(self, order_id: uuid.UUID, company_id: uuid.UUID, user: User) -> SalesOrder:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "accept", SalesOrderStatus.SENT)
        order.status = SalesOrderStatus.ACCEPTED
        order.accepted_by_id = user.id
        order.accepted_at = utcnow()
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def reject_order(
        self, order_id: uuid.UUID, reason: str, company_id: uuid.UUID, user: User,
    ) -> SalesOrder:
        if not reason or not reason.strip():
            raise ValidationException("A rejection reason is required", field="reason")
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "reject", SalesOrderStatus.SENT)
        order.status = SalesOrderStatus.REJECTED
        order.rejected_by_id = user.id
        order.rejected_at = utcnow()
        order.rejection_reason = reason.strip()
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def fulfill_order(
        self,
        order_id: uuid.UUID,
        company_id: uuid.UUID,
        user: User,
        delivery_date: Optional[date] = None,
    ) -> SalesOrder:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "fulfill", SalesOrderStatus.ACCEPTED)
        order.status = SalesOrderStatus.DELIVERED
        order.delivery_date = delivery_date or date.today()
        order.fulfilled_by_id = user.id
        order.fulfilled_at = utcnow()
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def reopen_order(
        self, order_id: uuid.UUID, valid_until: date, company_id: uuid.UUID, user: User,
    ) -> SalesOrder:
        order = await self.get_order(order_id, company_id)
        self._require_status(order, "reopen", SalesOrderStatus.EXPIRED)
        if valid_until <= date.today():
            raise ValidationException("valid_until must be in the future", field="valid_until")
        order.status = SalesOrderStatus.DRAFT
        order.valid_until = valid_until
        order.updated_by_id = user.id
        await self.db.flush()
        return order

    async def expire_overdue(self, company_id: uuid.UUID, today: Optional[date] = None) -> int:
        """Mark draft and sent orders past their validity date as expired."""
        today = today or date.today()
        result = await self.db.execute(
            update(SalesOrder)
            .where(
                SalesOrder.company_id == company_id,
                SalesOrder.status.in_([SalesOrderStatus.DRAFT, SalesOrderStatus.SENT]),
                SalesOrder.valid_until.is_not(None),
                SalesOrder.valid_until < today,
            )
            .values(status=SalesOrderStatus.EXPIRED, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} sales orders for company {company_id}")
        return result.rowcount

    async def convert_to_invoice(
        self,
        order_id: uuid.UUID,
        data: SalesOrderConvert,
        company_id: uuid.UUID,
        user: User,
    ) -> SalesInvoice:
        order = await self.get_order(order_id, company_id)
        if order.is_converted:
            raise BusinessRuleException(
                f"Sales order {order.sales_order_ref_number} has already been converted",
                rule="CONVERT_ONCE",
            )
        self._require_status(order, "convert", *CONVERTIBLE_STATUSES)

        invoice = await SalesInvoiceService(self.db).create_from_order(order, data, company_id, user)
        order.is_converted = True
        order.updated_by_id = user.id
        await self.db.flush()
        logger.info(
            f"Sales order {order.sales_order_ref_number} converted to invoice {invoice.invoice_ref_number}"
        )
        return invoice
