"""
POS Back Office - Financial Year Schemas
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backoffice.schemas.common import PaginationMeta, TenantInput


class FinancialYearCreate(TenantInput):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    description: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class FinancialYearUpdate(TenantInput):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class FinancialYearClose(TenantInput):
    closing_notes: Optional[str] = None


class FinancialYearResponse(BaseModel):
    id: UUID
    company_id: UUID
    name: str
    start_date: date
    end_date: date
    description: Optional[str] = None
    is_current: bool
    is_active: bool
    is_closed: bool
    closed_at: Optional[datetime] = None
    closed_by_id: Optional[UUID] = None
    closing_notes: Optional[str] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FinancialYearListResponse(BaseModel):
    items: List[FinancialYearResponse]
    pagination: PaginationMeta


class FinancialYearStats(BaseModel):
    total: int
    active: int
    closed: int
    open: int
    current: Optional[FinancialYearResponse] = None


class NameAvailability(BaseModel):
    name: str
    available: bool


class OverlapCheck(BaseModel):
    overlaps: bool
    conflicting: List[FinancialYearResponse] = []
