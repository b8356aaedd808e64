"""
POS Back Office - Journal Entry Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.journal_entry import LineType
from backoffice.schemas.common import PaginationMeta, TenantInput


class JournalEntryLineInput(TenantInput):
    """One line. ``original_amount`` defaults to ``amount``; ``exchange_rate`` to 1."""
    account_id: UUID
    type: LineType
    amount: Decimal = Field(..., gt=0)
    original_amount: Optional[Decimal] = Field(None, gt=0)
    currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None


class JournalEntryCreate(TenantInput):
    entry_date: date
    financial_year_id: UUID
    description: Optional[str] = None
    currency_id: Optional[UUID] = None
    lines: List[JournalEntryLineInput] = Field(..., min_length=2)


class JournalEntryUpdate(TenantInput):
    entry_date: Optional[date] = None
    financial_year_id: Optional[UUID] = None
    description: Optional[str] = None
    currency_id: Optional[UUID] = None
    lines: Optional[List[JournalEntryLineInput]] = Field(None, min_length=2)


class JournalEntryLineResponse(BaseModel):
    id: UUID
    account_id: UUID
    account_type_id: Optional[UUID] = None
    type: str
    amount: Decimal
    original_amount: Decimal
    equivalent_amount: Decimal
    currency_id: Optional[UUID] = None
    exchange_rate_id: Optional[UUID] = None
    exchange_rate: Decimal
    description: Optional[str] = None
    line_number: int

    model_config = ConfigDict(from_attributes=True)


class JournalEntryResponse(BaseModel):
    id: UUID
    company_id: UUID
    reference_number: str
    entry_date: date
    description: Optional[str] = None
    financial_year_id: UUID
    currency_id: Optional[UUID] = None
    total_debit: Decimal
    total_credit: Decimal
    is_posted: bool
    posted_at: Optional[datetime] = None
    posted_by_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    lines: List[JournalEntryLineResponse] = []

    model_config = ConfigDict(from_attributes=True)


class JournalEntryListResponse(BaseModel):
    items: List[JournalEntryResponse]
    pagination: PaginationMeta


class JournalEntryStats(BaseModel):
    total_entries: int
    posted_entries: int
    draft_entries: int
    total_debit: Decimal
    total_credit: Decimal
