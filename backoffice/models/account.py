"""
POS Back Office - Chart of Accounts Models

Account types carry the category (asset, liability, ...) and the normal
balance side; accounts hang off a type and optionally a parent account.
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, Boolean, Index, String, Text, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class AccountCategory(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class AccountNature(str, Enum):
    """Normal balance side."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AccountType(BaseModel, CompanyMixin, AuditMixin):
    """Account type (grouping used by the trial balance)."""

    __tablename__ = "account_types"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[AccountCategory] = mapped_column(SQLEnum(AccountCategory), nullable=False)
    nature: Mapped[AccountNature] = mapped_column(SQLEnum(AccountNature), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("name", "company_id", name="uq_account_types_name_company"),
        UniqueConstraint("code", "company_id", name="uq_account_types_code_company"),
    )


class Account(BaseModel, CompanyMixin, AuditMixin):
    """Ledger account."""

    __tablename__ = "accounts"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    # Copied from the account type's category
    type: Mapped[AccountCategory] = mapped_column(SQLEnum(AccountCategory), nullable=False)
    nature: Mapped[AccountNature] = mapped_column(SQLEnum(AccountNature), nullable=False)
    account_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("account_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[AccountStatus] = mapped_column(
        SQLEnum(AccountStatus),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("code", "company_id", name="uq_accounts_code_company"),
        Index("ix_accounts_company_type", "company_id", "account_type_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
