"""
POS Back Office - General Ledger Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from backoffice.schemas.common import PaginationMeta


class GeneralLedgerResponse(BaseModel):
    id: UUID
    company_id: UUID
    financial_year_code: str
    financial_year_id: UUID
    system_date: datetime
    transaction_date: date
    reference_number: str
    transaction_type: str
    transaction_type_name: str
    created_by_code: str
    created_by_name: str
    description: Optional[str] = None
    account_type_code: Optional[str] = None
    account_type_name: Optional[str] = None
    account_type_id: Optional[UUID] = None
    account_id: UUID
    account_name: str
    account_code: str
    account_nature: str
    exchange_rate: Decimal
    amount: Decimal
    system_currency_id: UUID
    user_debit_amount: Optional[Decimal] = None
    user_credit_amount: Optional[Decimal] = None
    equivalent_debit_amount: Optional[Decimal] = None
    equivalent_credit_amount: Optional[Decimal] = None
    username: str

    model_config = ConfigDict(from_attributes=True)


class GeneralLedgerListResponse(BaseModel):
    items: List[GeneralLedgerResponse]
    pagination: PaginationMeta


class AccountBalanceResponse(BaseModel):
    account_id: UUID
    financial_year_id: UUID
    as_of: date
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
