"""
POS Back Office - Auto Code Model

Per-company numbering configuration for master-data codes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base import AuditMixin, BaseModel, CompanyMixin


class CodeType(str, Enum):
    CODE = "code"
    REFERENCE_NUMBER = "reference_number"
    BARCODE = "barcode"
    INVOICE_NUMBER = "invoice_number"
    RECEIPT_NUMBER = "receipt_number"


class AutoCodeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AutoCode(BaseModel, CompanyMixin, AuditMixin):
    """
    Code format for one module, e.g. ``{COMPANY_CODE}-{PREFIX}-{NUMBER}``.

    Supported placeholders: PREFIX, YEAR, MONTH, DAY, NUMBER, COMPANY_CODE.
    """

    __tablename__ = "auto_codes"

    module_name: Mapped[str] = mapped_column(String(100), nullable=False)
    module_display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    code_type: Mapped[CodeType] = mapped_column(SQLEnum(CodeType), default=CodeType.CODE, nullable=False)
    prefix: Mapped[str] = mapped_column(String(20), nullable=False)
    format: Mapped[str] = mapped_column(String(100), nullable=False)
    next_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    number_padding: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[AutoCodeStatus] = mapped_column(
        SQLEnum(AutoCodeStatus),
        default=AutoCodeStatus.ACTIVE,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("module_name", "company_id", name="uq_auto_codes_module_company"),
        CheckConstraint("next_number >= 1", name="next_number_positive"),
        CheckConstraint("number_padding BETWEEN 1 AND 10", name="number_padding_range"),
    )
