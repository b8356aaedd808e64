"""
POS Back Office - Companies Router
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.database import get_async_session
from backoffice.dependencies import CompanyScope, get_company_scope
from backoffice.schemas.auth import CompanyResponse
from backoffice.services.auth_service import AuthService
from backoffice.utils.error_handling import NotFoundException

router = APIRouter(prefix="/api/v1/companies", tags=["Companies"])


@router.get("/current", response_model=CompanyResponse)
async def get_current_company(
    scope: CompanyScope = Depends(get_company_scope),
    db: AsyncSession = Depends(get_async_session),
):
    """The company the caller belongs to."""
    company_id = scope.require_company()
    company = await AuthService(db).get_company(company_id)
    if company is None:
        raise NotFoundException("Company", company_id)
    return company
