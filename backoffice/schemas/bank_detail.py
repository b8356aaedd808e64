"""
POS Back Office - Bank Detail Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.common import PaginationMeta, TenantInput


class BankDetailCreate(TenantInput):
    bank_name: str = Field(..., min_length=1, max_length=100)
    branch: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=100)
    account_id: Optional[UUID] = None
    is_active: bool = True


class BankDetailUpdate(TenantInput):
    bank_name: Optional[str] = Field(None, min_length=1, max_length=100)
    branch: Optional[str] = Field(None, min_length=1, max_length=100)
    account_number: Optional[str] = Field(None, min_length=1, max_length=100)
    account_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class BankDetailResponse(BaseModel):
    id: UUID
    company_id: UUID
    code: str
    bank_name: str
    branch: str
    account_number: str
    account_id: Optional[UUID] = None
    is_active: bool
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BankDetailListResponse(BaseModel):
    items: List[BankDetailResponse]
    pagination: PaginationMeta


class BankDetailStats(BaseModel):
    total: int
    active: int
    inactive: int
    linked_to_account: int
