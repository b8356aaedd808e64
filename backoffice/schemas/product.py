"""
POS Back Office - Product Color and Product Model Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.common import PaginationMeta, TenantInput

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# ===========================================
# PRODUCT COLORS
# ===========================================

class ProductColorCreate(TenantInput):
    name: str = Field(..., min_length=1, max_length=100)
    hex_code: str = Field(..., pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None
    is_active: bool = True


class ProductColorUpdate(TenantInput):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    hex_code: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProductColorResponse(BaseModel):
    id: UUID
    company_id: UUID
    code: str
    name: str
    hex_code: str
    description: Optional[str] = None
    is_active: bool
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductColorListResponse(BaseModel):
    items: List[ProductColorResponse]
    pagination: PaginationMeta


# ===========================================
# PRODUCT MODELS
# ===========================================

class ProductModelCreate(TenantInput):
    code: Optional[str] = Field(None, max_length=50, description="Generated when omitted")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    brand: Optional[str] = Field(None, max_length=100)
    model_number: Optional[str] = Field(None, max_length=100)
    specifications: Optional[str] = None
    is_active: bool = True


class ProductModelUpdate(TenantInput):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    brand: Optional[str] = Field(None, max_length=100)
    model_number: Optional[str] = Field(None, max_length=100)
    specifications: Optional[str] = None
    is_active: Optional[bool] = None


class ProductModelResponse(BaseModel):
    id: UUID
    company_id: UUID
    code: str
    name: str
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    brand: Optional[str] = None
    model_number: Optional[str] = None
    specifications: Optional[str] = None
    is_active: bool
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductModelListResponse(BaseModel):
    items: List[ProductModelResponse]
    pagination: PaginationMeta


class CodeAvailability(BaseModel):
    code: str
    available: bool


class ActiveCountStats(BaseModel):
    total: int
    active: int
    inactive: int
