"""
POS Back Office - Auto Code Schemas
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.models.auto_code import AutoCodeStatus, CodeType
from backoffice.schemas.common import TenantInput


class AutoCodeCreate(TenantInput):
    module_name: str = Field(..., min_length=1, max_length=100)
    module_display_name: str = Field(..., min_length=1, max_length=255)
    code_type: CodeType = CodeType.CODE
    prefix: str = Field(..., min_length=1, max_length=20)
    format: str = Field(..., min_length=1, max_length=100)
    next_number: int = Field(1, ge=1)
    number_padding: int = Field(4, ge=1, le=10)
    status: AutoCodeStatus = AutoCodeStatus.ACTIVE
    description: Optional[str] = None


class AutoCodeUpdate(TenantInput):
    module_display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    code_type: Optional[CodeType] = None
    prefix: Optional[str] = Field(None, min_length=1, max_length=20)
    format: Optional[str] = Field(None, min_length=1, max_length=100)
    next_number: Optional[int] = Field(None, ge=1)
    number_padding: Optional[int] = Field(None, ge=1, le=10)
    status: Optional[AutoCodeStatus] = None
    description: Optional[str] = None


class AutoCodeResponse(BaseModel):
    id: UUID
    company_id: UUID
    module_name: str
    module_display_name: str
    code_type: CodeType
    prefix: str
    format: str
    next_number: int
    number_padding: int
    last_used: Optional[datetime] = None
    status: AutoCodeStatus
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NextCodePreview(BaseModel):
    module_name: str
    code: str
    configured: bool


class AvailableModule(BaseModel):
    module_name: str
    display_name: str
    default_prefix: str
    default_format: str
    configured: bool


class AvailableModulesResponse(BaseModel):
    modules: List[AvailableModule]
