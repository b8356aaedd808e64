"""
POS Back Office - Currency and Exchange Rate Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from backoffice.schemas.common import PaginationMeta, TenantInput


# ===========================================
# CURRENCIES
# ===========================================

class CurrencyCreate(TenantInput):
    code: Optional[str] = Field(None, max_length=50, description="Generated when omitted")
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=10)
    country: Optional[str] = Field(None, max_length=100)
    flag: Optional[str] = Field(None, max_length=16)
    is_default: bool = False
    is_active: bool = True


class CurrencyUpdate(TenantInput):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    symbol: Optional[str] = Field(None, min_length=1, max_length=10)
    country: Optional[str] = Field(None, max_length=100)
    flag: Optional[str] = Field(None, max_length=16)
    is_active: Optional[bool] = None


class CurrencyResponse(BaseModel):
    id: UUID
    company_id: UUID
    code: str
    name: str
    symbol: str
    country: Optional[str] = None
    flag: Optional[str] = None
    is_default: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrencyListResponse(BaseModel):
    items: List[CurrencyResponse]
    pagination: PaginationMeta


class CurrencyBrief(BaseModel):
    id: UUID
    code: str
    name: str
    symbol: str

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# EXCHANGE RATES
# ===========================================

class ExchangeRateCreate(TenantInput):
    from_currency_id: UUID
    to_currency_id: UUID
    rate: Decimal = Field(..., gt=0)
    effective_date: date
    is_active: bool = True


class ExchangeRateUpdate(TenantInput):
    from_currency_id: Optional[UUID] = None
    to_currency_id: Optional[UUID] = None
    rate: Optional[Decimal] = Field(None, gt=0)
    effective_date: Optional[date] = None
    is_active: Optional[bool] = None


class ExchangeRateResponse(BaseModel):
    id: UUID
    company_id: UUID
    from_currency_id: UUID
    to_currency_id: UUID
    from_currency: Optional[CurrencyBrief] = None
    to_currency: Optional[CurrencyBrief] = None
    rate: Decimal
    effective_date: date
    is_active: bool
    created_by_id: Optional[UUID] = None
    updated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExchangeRateListResponse(BaseModel):
    items: List[ExchangeRateResponse]
    pagination: PaginationMeta


class ExchangeRateStats(BaseModel):
    total: int
    active: int
    inactive: int
    expired: int
    last_update: Optional[datetime] = None


class LatestRateResponse(BaseModel):
    """Rate converting ``currency_id`` into the company's default currency."""
    currency_id: UUID
    default_currency_id: UUID
    rate: Decimal
    exchange_rate_id: Optional[UUID] = None
    effective_date: Optional[date] = None


class ConversionRequest(TenantInput):
    amount: Decimal
    from_currency_id: UUID
    to_currency_id: UUID
    on_date: Optional[date] = None


class ConversionResponse(BaseModel):
    amount: Decimal
    converted_amount: Decimal
    rate: Decimal
    from_currency_id: UUID
    to_currency_id: UUID
    inverse: bool = False
    exchange_rate_id: Optional[UUID] = None
