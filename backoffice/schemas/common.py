"""
POS Back Office - Shared Schemas

Pagination envelopes and the tenant-safe request base.
"""

import logging
import math
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, model_validator

logger = logging.getLogger(__name__)

# Client-supplied tenant keys; ownership always comes from the caller's token
TENANT_KEYS = ("companyId", "company_id")


class TenantInput(BaseModel):
    """Request body base that discards any tenant id sent by the client."""

    @model_validator(mode="before")
    @classmethod
    def strip_company_id(cls, data: Any) -> Any:
        if isinstance(data, dict):
            supplied = [key for key in TENANT_KEYS if key in data]
            if supplied:
                logger.warning(
                    f"Ignoring client-supplied tenant field(s) {supplied} on {cls.__name__}"
                )
                data = {k: v for k, v in data.items() if k not in TENANT_KEYS}
        return data

    def changed_fields(self, *clearable: str, exclude: Optional[Set[str]] = None) -> Dict[str, Any]:
        """
        Fields the client actually sent on a partial update.

        An explicit null is kept only for the ``clearable`` fields; for every
        other field it means "leave unchanged".
        """
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True, exclude=exclude).items()
            if value is not None or field in clearable
        }


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


class MessageResponse(BaseModel):
    message: str
