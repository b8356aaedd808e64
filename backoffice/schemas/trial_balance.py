"""
POS Back Office - Trial Balance Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class TrialBalanceAccountRow(BaseModel):
    account_id: UUID
    account_code: str
    account_name: str
    account_type_id: UUID
    parent_id: Optional[UUID] = None
    nature: str
    status: str
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    debit_balance: Decimal
    credit_balance: Decimal


class TrialBalanceGroup(BaseModel):
    account_type_id: UUID
    account_type_code: str
    account_type_name: str
    category: str
    accounts: List[TrialBalanceAccountRow]
    total_debit: Decimal
    total_credit: Decimal
    debit_balance: Decimal
    credit_balance: Decimal


class TrialBalanceSummary(BaseModel):
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool
    account_count: int
    accounts_with_activity: int


class TrialBalanceFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    include_zero_balances: bool
    include_inactive: bool


class TrialBalanceMetadata(BaseModel):
    company_id: UUID
    financial_year_id: UUID
    financial_year_name: str
    financial_year_start: date
    financial_year_end: date
    default_currency_id: Optional[UUID] = None
    default_currency_code: Optional[str] = None
    generated_at: datetime
    generated_by: str
    filters: TrialBalanceFilters


class TrialBalanceResponse(BaseModel):
    metadata: TrialBalanceMetadata
    groups: List[TrialBalanceGroup]
    summary: TrialBalanceSummary


class TrialBalanceNode(TrialBalanceAccountRow):
    """Account with its own and its descendants' activity rolled up."""
    own_debit: Decimal
    own_credit: Decimal
    children: List["TrialBalanceNode"] = []


class HierarchicalTrialBalanceResponse(BaseModel):
    metadata: TrialBalanceMetadata
    accounts: List[TrialBalanceNode]
    summary: TrialBalanceSummary


TrialBalanceNode.model_rebuild()
