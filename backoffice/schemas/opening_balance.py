"""
POS Back Office - Opening Balance Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.journal_entry import LineType
from backoffice.schemas.common import PaginationMeta, TenantInput


class OpeningBalanceCreate(TenantInput):
    """
    ``amount`` is in the balance's own currency; ``original_amount`` defaults
    to it. The rate defaults to the referenced rate record, then 1 for the
    default currency, then the latest rate into the default currency.
    """
    account_id: UUID
    financial_year_id: UUID
    balance_date: date
    type: LineType
    amount: Decimal = Field(..., gt=0)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=255)


class OpeningBalanceUpdate(TenantInput):
    balance_date: Optional[date] = None
    type: Optional[LineType] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=255)


class OpeningBalanceResponse(BaseModel):
    id: UUID
    company_id: UUID
    reference_number: str
    account_id: UUID
    account_type_id: Optional[UUID] = None
    financial_year_id: UUID
    balance_date: date
    type: str
    description: Optional[str] = None
    amount: Decimal
    original_amount: Decimal
    currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Decimal
    equivalent_amount: Decimal
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OpeningBalanceListResponse(BaseModel):
    items: List[OpeningBalanceResponse]
    pagination: PaginationMeta


class OpeningBalanceStats(BaseModel):
    total_opening_balances: int
    total_debit_amount: Decimal
    total_credit_amount: Decimal
    active_financial_years: int
    # credit minus debit; zero when the opening position balances
    delta: Decimal


class OpeningBalanceExists(BaseModel):
    exists: bool
    opening_balance: Optional[OpeningBalanceResponse] = None
