"""
POS Back Office - Chart of Accounts Schemas
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.account import AccountCategory, AccountNature, AccountStatus
from backoffice.schemas.common import PaginationMeta, TenantInput


# ===========================================
# ACCOUNT TYPES
# ===========================================

class AccountTypeCreate(TenantInput):
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=50, description="Generated when omitted")
    category: AccountCategory
    nature: AccountNature
    description: Optional[str] = None
    is_active: bool = True


class AccountTypeUpdate(TenantInput):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[AccountCategory] = None
    nature: Optional[AccountNature] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class AccountTypeResponse(BaseModel):
    id: UUID
    company_id: UUID
    name: str
    code: str
    category: AccountCategory
    nature: AccountNature
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# ACCOUNTS
# ===========================================

class AccountCreate(TenantInput):
    name: str = Field(..., min_length=1, max_length=150)
    account_type_id: UUID
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    status: AccountStatus = AccountStatus.ACTIVE


class AccountUpdate(TenantInput):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    # Codes are immutable; a differing value is rejected
    code: Optional[str] = None
    account_type_id: Optional[UUID] = None
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    status: Optional[AccountStatus] = None


class AccountResponse(BaseModel):
    id: UUID
    company_id: UUID
    name: str
    code: str
    type: AccountCategory
    nature: AccountNature
    account_type_id: UUID
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    status: AccountStatus
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountListResponse(BaseModel):
    items: List[AccountResponse]
    pagination: PaginationMeta


class AccountTreeNode(BaseModel):
    id: UUID
    name: str
    code: str
    nature: AccountNature
    status: AccountStatus
    parent_id: Optional[UUID] = None
    children: List["AccountTreeNode"] = []


class AccountTypeTree(BaseModel):
    account_type_id: UUID
    account_type_name: str
    account_type_code: str
    category: AccountCategory
    accounts: List[AccountTreeNode] = []


class AccountStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_type: Dict[str, int]


AccountTreeNode.model_rebuild()
